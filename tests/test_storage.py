"""Tests for the storage module."""

import json
import tempfile
from pathlib import Path

import pytest

from ai_key_manager.adapters import ExtractionError
from ai_key_manager.logger import AuditLogger
from ai_key_manager.records import create_key
from ai_key_manager.storage import KeyStore, StorageError, parse_key_file


class TestParseKeyFile:
    """Tests for reading key file content."""

    def test_record_array_loaded_verbatim(self):
        content = json.dumps([{
            "id": "keep-me",
            "name": "N",
            "value": "V",
            "provider": "Cohere",
            "description": "",
            "dateAdded": "2024-01-01T00:00:00",
        }])

        keys = parse_key_file(content)

        assert keys[0].id == "keep-me"
        assert keys[0].provider == "Cohere"

    def test_plain_mapping_goes_through_json_import(self):
        keys = parse_key_file('{"ANTHROPIC_API_KEY": "sk-ant-1"}')

        assert keys[0].name == "ANTHROPIC_API_KEY"
        assert keys[0].provider == "Anthropic"

    def test_array_without_ids_gets_new_ids(self):
        keys = parse_key_file('[{"name": "N", "value": "V"}]')
        assert keys[0].id

    def test_invalid_json_raises(self):
        with pytest.raises(ExtractionError):
            parse_key_file("not json")

    def test_malformed_records_skipped(self):
        content = json.dumps([
            {"id": "1", "name": "GOOD", "value": "v1"},
            {"id": "2", "value": "no-name"},
            {"id": "3", "name": "NULL_VALUE", "value": None},
            "not a record",
            {"id": "4", "name": "ALSO_GOOD", "value": "v4"},
        ])

        keys = parse_key_file(content)

        assert [k.name for k in keys] == ["GOOD", "ALSO_GOOD"]
        assert [k.id for k in keys] == ["1", "4"]

    def test_malformed_records_logged(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = AuditLogger(log_dir=tmpdir)

            parse_key_file('[{"id": "1", "name": "A", "value": "v"}, 42]', logger=logger)

            logs = logger.get_recent_logs()
            assert any("Skipped malformed key record" in log and "index=1" in log for log in logs)


class TestKeyStore:
    """Tests for the KeyStore class."""

    @pytest.fixture
    def temp_storage_dir(self):
        """Create a temporary storage directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.fixture
    def store(self, temp_storage_dir):
        logger = AuditLogger(log_dir=str(Path(temp_storage_dir) / "logs"))
        return KeyStore(storage_dir=temp_storage_dir, logger=logger)

    def test_default_key_file(self, store, temp_storage_dir):
        assert store.key_path == Path(temp_storage_dir) / "default.key"
        assert store.key_filename == "default.key"

    def test_missing_file_is_empty(self, store):
        assert not store.exists()
        assert store.load() == []

    def test_save_and_load(self, store):
        keys = [create_key("A", "1", "AWS"), create_key("B", "2", "Other", description="x")]

        store.save(keys)

        assert store.exists()
        assert store.load() == keys

    def test_saved_file_is_pretty_json_array(self, store):
        store.save([create_key("A", "1", "AWS")])

        content = store.key_path.read_text(encoding="utf-8")

        assert content.startswith("[\n  {\n")
        assert json.loads(content)[0]["name"] == "A"

    def test_corrupt_file_loads_empty(self, store):
        store.key_path.write_text("{{{", encoding="utf-8")

        assert store.load() == []
        assert any("Failed to load key file" in log for log in store.logger.get_recent_logs())

    def test_corrupt_file_backed_up_before_overwrite(self, store):
        store.key_path.write_text("{{{", encoding="utf-8")

        store.load()
        store.save([create_key("A", "1", "AWS")])

        assert store.backup_path is not None
        assert store.backup_path.parent == store.backup_dir
        assert store.backup_path.read_text(encoding="utf-8") == "{{{"

    def test_invalid_utf8_loads_empty(self, store):
        store.key_path.write_bytes(b"[\xff]")

        assert store.load() == []
        assert store.backup_path.read_bytes() == b"[\xff]"

    def test_refuses_overwrite_without_backup(self, store):
        store.key_path.write_text("{{{", encoding="utf-8")
        # A file where the backups directory should be
        store.backup_dir.write_text("", encoding="utf-8")

        assert store.load() == []
        assert store.backup_path is None

        with pytest.raises(StorageError):
            store.save([create_key("A", "1", "AWS")])
        assert store.key_path.read_text(encoding="utf-8") == "{{{"

    def test_save_as_switches_file(self, store, temp_storage_dir):
        target = Path(temp_storage_dir) / "sub" / "work.key"
        keys = [create_key("A", "1", "AWS")]

        store.save_as(keys, str(target))

        assert target.exists()
        assert store.key_path == target
        assert store.load() == keys

    def test_save_to_unwritable_path_raises(self, store, temp_storage_dir):
        blocker = Path(temp_storage_dir) / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")

        with pytest.raises(StorageError):
            store.save_as([], str(blocker / "keys.key"))

    def test_suggest_save_as_name(self, store, temp_storage_dir):
        assert store.suggest_save_as_name() == "my_keys.key"

        other = KeyStore(
            storage_dir=temp_storage_dir,
            key_file=str(Path(temp_storage_dir) / "team.key"),
            logger=store.logger,
        )
        assert other.suggest_save_as_name() == "copy_of_team.key"

    def test_generate_unique_key_filename(self, temp_storage_dir):
        first = KeyStore.generate_unique_key_filename(temp_storage_dir)
        assert Path(first).name == "new_keys_1.key"

        Path(first).write_text("[]", encoding="utf-8")
        (Path(temp_storage_dir) / "new_keys_2.key").write_text("[]", encoding="utf-8")

        assert Path(KeyStore.generate_unique_key_filename(temp_storage_dir)).name == "new_keys_3.key"
