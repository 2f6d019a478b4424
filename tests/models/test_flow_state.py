"""Tests for flow state serialization and strict loading."""

import json

import pytest

from grantflow.models.errors import FlowStateError
from grantflow.models.flow_state import FlowState


class TestFlowStateSerialization:
    def test_to_json_emits_all_keys_in_fixed_order(self):
        # Arrange
        flow_state = FlowState(phase="awaitingResponse", pkce_verifier="")

        # Act
        raw = flow_state.to_json()

        # Assert
        parsed = json.loads(raw)
        assert list(parsed) == [
            "phase",
            "pkceVerifier",
            "redirectUri",
            "state",
            "scopes",
        ]
        assert parsed["redirectUri"] is None
        assert parsed["state"] is None
        assert parsed["scopes"] is None

    def test_round_trip_preserves_every_field(self):
        # Arrange
        flow_state = FlowState(
            phase="awaitingResponse",
            pkce_verifier="verifier-abc",
            redirect_uri="https://myapp.com/callback",
            state="csrf-123",
            scopes=["b", "a"],
        )

        # Act
        loaded = FlowState.from_json(flow_state.to_json())

        # Assert
        assert loaded == flow_state
        assert loaded.scopes == ["b", "a"]

    def test_unknown_keys_are_ignored(self):
        loaded = FlowState.from_json(
            '{"phase": "initial", "pkceVerifier": "", "clientSecret": "nope"}'
        )

        assert loaded.phase == "initial"
        assert loaded.redirect_uri is None
        assert loaded.scopes is None


class TestFlowStateValidation:
    def _load_error(self, raw: str) -> FlowStateError:
        with pytest.raises(FlowStateError) as exc_info:
            FlowState.from_json(raw)
        return exc_info.value

    def test_invalid_json(self):
        error = self._load_error("{not json")

        assert error.field is None
        assert "invalid JSON" in str(error)
        assert error.raw == "{not json"

    def test_top_level_not_an_object(self):
        error = self._load_error('["phase"]')

        assert error.field is None
        assert "was not a JSON object" in str(error)

    def test_missing_phase(self):
        error = self._load_error('{"pkceVerifier": "x"}')

        assert error.field == "phase"
        assert 'did not contain required field "phase"' in str(error)
        assert '{"pkceVerifier": "x"}' in str(error)

    def test_non_string_phase(self):
        error = self._load_error('{"phase": 3, "pkceVerifier": "x"}')

        assert error.field == "phase"
        assert 'required field "phase" was not a string' in str(error)

    def test_missing_pkce_verifier(self):
        error = self._load_error('{"phase": "initial"}')

        assert error.field == "pkceVerifier"

    def test_non_string_pkce_verifier(self):
        error = self._load_error('{"phase": "initial", "pkceVerifier": null}')

        assert error.field == "pkceVerifier"
        assert "was not a string" in str(error)

    def test_scopes_not_a_list(self):
        error = self._load_error(
            '{"phase": "x", "pkceVerifier": "y", "scopes": "notalist"}'
        )

        assert error.field == "scopes"
        assert "notalist" in str(error)

    def test_snake_case_verifier_key_is_not_accepted(self):
        error = self._load_error('{"phase": "x", "pkce_verifier": "y"}')

        assert error.field == "pkceVerifier"
        assert 'did not contain required field "pkceVerifier"' in str(error)

    def test_snake_case_optional_key_is_ignored(self):
        loaded = FlowState.from_json(
            '{"phase": "x", "pkceVerifier": "y", "redirect_uri": "https://a.b/c"}'
        )

        assert loaded.redirect_uri is None

    def test_phase_reported_before_later_fields(self):
        error = self._load_error('{"scopes": 5}')

        assert error.field == "phase"

    def test_optional_field_of_wrong_type(self):
        error = self._load_error(
            '{"phase": "x", "pkceVerifier": "y", "redirectUri": 42}'
        )

        assert error.field == "redirectUri"
