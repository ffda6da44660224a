"""Tests for relflow.release.store."""

from pathlib import Path

from relflow.core.errors import ErrorKind
from relflow.core.result import Err, Ok
from relflow.release.descriptor import ReleaseDescriptor, ResolvedDependency, ScmInfo
from relflow.release.store import (
    RELEASE_PROPERTIES,
    DescriptorStore,
    descriptor_from_properties,
    descriptor_to_properties,
)


class _ReversingCipher:
    def encrypt(self, value: str) -> str:
        return value[::-1]

    def decrypt(self, value: str) -> str:
        return value[::-1]


def _prepared(tmp_path: Path) -> ReleaseDescriptor:
    return ReleaseDescriptor(
        working_directory=tmp_path,
        completed_phase="scm-tag",
        scm_source_url="scm:git:file:///srv/widget.git",
        scm_release_label="widget-1.0",
        scm_password="s3cret",
        scm_comment_prefix="[ci] ",
        commit_by_project=True,
        push_changes=False,
        check_modification_excludes=("*.lock", "docs/*"),
        release_versions={"org.acme:widget": "1.0", "org.acme:core": "1.0"},
        development_versions={"org.acme:widget": "1.1-SNAPSHOT"},
        original_scm_info={
            "org.acme:widget": ScmInfo(connection="scm:git:file:///srv/widget.git", tag="HEAD"),
            "org.acme:core": None,
        },
        resolved_snapshot_dependencies={
            "org.acme:lib": ResolvedDependency(release="2.0", development="2.1-SNAPSHOT")
        },
    )


# =============================================================================
# Property mapping
# =============================================================================


class TestPropertyMapping:
    def test_keys(self, tmp_path: Path) -> None:
        props = descriptor_to_properties(_prepared(tmp_path))

        assert props["completedPhase"] == "scm-tag"
        assert props["scm.url"] == "scm:git:file:///srv/widget.git"
        assert props["scm.tag"] == "widget-1.0"
        assert props["commitByProject"] == "true"
        assert props["pushChanges"] == "false"
        assert props["scm.checkModificationExcludes"] == "*.lock,docs/*"
        assert props["project.rel.org.acme:widget"] == "1.0"
        assert props["project.dev.org.acme:widget"] == "1.1-SNAPSHOT"
        assert props["project.scm.org.acme:widget.tag"] == "HEAD"
        assert props["project.scm.org.acme:core.empty"] == "true"
        assert props["dependency.org.acme:lib.release"] == "2.0"
        assert props["dependency.org.acme:lib.development"] == "2.1-SNAPSHOT"

    def test_ephemeral_fields_are_not_written(self, tmp_path: Path) -> None:
        props = descriptor_to_properties(_prepared(tmp_path))
        assert not any(str(tmp_path) in value for value in props.values())
        assert "interactive" not in props

    def test_secrets_go_through_cipher(self, tmp_path: Path) -> None:
        props = descriptor_to_properties(_prepared(tmp_path), _ReversingCipher())
        assert props["scm.password"] == "terc3s"
        loaded = descriptor_from_properties(props, _ReversingCipher())
        assert loaded.scm_password == "s3cret"

    def test_unknown_dependency_keys_are_ignored(self) -> None:
        loaded = descriptor_from_properties({"dependency.g:a.other": "x", "unrelated": "y"})
        assert loaded.resolved_snapshot_dependencies == {}


# =============================================================================
# Store
# =============================================================================


class TestDescriptorStore:
    def test_write_then_load(self, tmp_path: Path) -> None:
        store = DescriptorStore()
        original = _prepared(tmp_path)

        written = store.write(original)
        assert written == Ok(tmp_path / RELEASE_PROPERTIES)

        loaded = store.load(tmp_path / RELEASE_PROPERTIES).unwrap()
        assert loaded.completed_phase == "scm-tag"
        assert loaded.scm_password == "s3cret"
        assert loaded.scm_comment_prefix == "[ci] "
        assert loaded.commit_by_project is True
        assert loaded.push_changes is False
        assert loaded.check_modification_excludes == ("*.lock", "docs/*")
        assert loaded.release_versions == original.release_versions
        assert loaded.development_versions == original.development_versions
        assert loaded.original_scm_info == original.original_scm_info
        assert loaded.resolved_snapshot_dependencies == original.resolved_snapshot_dependencies
        assert loaded.working_directory is None

    def test_characters_outside_the_bmp_survive(self, tmp_path: Path) -> None:
        store = DescriptorStore()
        descriptor = ReleaseDescriptor(
            working_directory=tmp_path,
            scm_release_commit_comment="release 🚀 done",
            scm_comment_prefix="[𝔯𝔢𝔩] ",
        )
        store.write(descriptor)

        text = (tmp_path / RELEASE_PROPERTIES).read_text(encoding="utf-8")
        assert "\\ud83d\\ude80" in text

        loaded = store.load(tmp_path / RELEASE_PROPERTIES).unwrap()
        assert loaded.scm_release_commit_comment == "release 🚀 done"
        assert loaded.scm_comment_prefix == "[𝔯𝔢𝔩] "

    def test_scm_section_without_values_survives(self, tmp_path: Path) -> None:
        store = DescriptorStore()
        descriptor = ReleaseDescriptor(
            working_directory=tmp_path,
            original_scm_info={"org.acme:widget": ScmInfo(), "org.acme:core": None},
        )
        store.write(descriptor)

        loaded = store.load(tmp_path / RELEASE_PROPERTIES).unwrap()
        assert loaded.original_scm_info == {"org.acme:widget": ScmInfo(), "org.acme:core": None}

    def test_missing_file_is_empty_descriptor(self, tmp_path: Path) -> None:
        result = DescriptorStore().load(tmp_path / RELEASE_PROPERTIES)
        assert result == Ok(ReleaseDescriptor())

    def test_unreadable_file(self, tmp_path: Path) -> None:
        (tmp_path / RELEASE_PROPERTIES).mkdir()
        result = DescriptorStore().load(tmp_path / RELEASE_PROPERTIES)
        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.EXECUTION

    def test_read_merges_caller_over_checkpoint(self, tmp_path: Path) -> None:
        store = DescriptorStore()
        store.write(_prepared(tmp_path))

        caller = ReleaseDescriptor(
            working_directory=tmp_path,
            interactive=False,
            scm_username="alice",
            release_versions={"org.acme:widget": "1.0.1"},
        )
        merged = store.read(caller).unwrap()

        assert merged.completed_phase == "scm-tag"
        assert merged.scm_release_label == "widget-1.0"
        assert merged.scm_username == "alice"
        assert merged.interactive is False
        assert merged.working_directory == tmp_path
        assert merged.release_versions == {"org.acme:widget": "1.0.1", "org.acme:core": "1.0"}

    def test_delete(self, tmp_path: Path) -> None:
        store = DescriptorStore()
        descriptor = ReleaseDescriptor(working_directory=tmp_path)
        store.write(descriptor)

        assert store.delete(descriptor) == Ok(None)
        assert not (tmp_path / RELEASE_PROPERTIES).exists()
        # deleting twice is fine
        assert store.delete(descriptor) == Ok(None)
