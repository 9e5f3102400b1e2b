"""
Tests for GuidService - prefixed Crockford Base32 identifiers.
"""

import uuid

import pytest

from backend.src.services.guid import GuidService


class TestGuidService:

    def test_generated_guid_has_prefix_and_length(self):
        guid = GuidService.generate_guid("evt")
        assert guid.startswith("evt_")
        assert len(guid) == 4 + 26

    def test_parse_returns_encoded_uuid(self):
        value = uuid.uuid4()
        guid = GuidService.encode_uuid(value, "usr")
        assert GuidService.parse_identifier(guid, "usr") == value

    def test_parse_is_case_insensitive(self):
        value = uuid.uuid4()
        guid = GuidService.encode_uuid(value, "tsk")
        assert GuidService.parse_identifier(guid.upper().replace("TSK_", "tsk_"), "tsk") == value

    def test_prefix_mismatch_rejected(self):
        guid = GuidService.generate_guid("vnd")
        with pytest.raises(ValueError, match="prefix mismatch"):
            GuidService.parse_identifier(guid, "pay")

    def test_numeric_ids_rejected(self):
        with pytest.raises(ValueError, match="Numeric IDs"):
            GuidService.parse_identifier("42", "evt")

    @pytest.mark.parametrize("bad", ["", "evt_", "evt_123", "xyz_01hgw2bbg0000000000000001", "not-a-guid"])
    def test_malformed_identifiers_rejected(self, bad):
        with pytest.raises(ValueError):
            GuidService.parse_identifier(bad)

    def test_unknown_prefix_cannot_be_encoded(self):
        with pytest.raises(ValueError, match="Invalid prefix"):
            GuidService.encode_uuid(uuid.uuid4(), "foo")

    def test_entity_type_lookup(self):
        assert GuidService.get_entity_type(GuidService.generate_guid("pay")) == "Payment"
        assert GuidService.get_entity_type("zz") is None

    def test_model_guid_property(self, client_user):
        assert client_user.guid.startswith("usr_")
        assert client_user.parse_guid(client_user.guid) == client_user.uuid

    @pytest.mark.parametrize("prefix, entity", [("con", "Contact"), ("led", "Lead"), ("dea", "Deal")])
    def test_pipeline_record_prefixes(self, prefix, entity):
        guid = GuidService.generate_guid(prefix)
        assert GuidService.validate_guid(guid, prefix)
        assert GuidService.get_entity_type(guid) == entity
