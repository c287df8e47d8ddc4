"""Required-file resolution and excluded-entry scanning."""

from __future__ import annotations

from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from check_prepublish.domain import PackageDescriptor
from check_prepublish.required_files import (
    find_excluded_entry,
    first_missing_file,
    missing_files,
    resolve_required_files,
)

_paths = st.from_regex(r"\.?/?[a-z][a-z0-9/_.-]{0,12}", fullmatch=True)


def test_resolve_orders_manifest_fields_then_extras() -> None:
    descriptor = PackageDescriptor(
        name="x",
        main="dist/index.js",
        module="dist/index.mjs",
        types="dist/index.d.ts",
        bin={"a": "bin/a.js", "b": "bin/b.js"},
    )

    assert resolve_required_files(descriptor, ["README.md", "LICENSE"]) == (
        "package.json",
        "dist/index.js",
        "dist/index.mjs",
        "dist/index.d.ts",
        "bin/a.js",
        "bin/b.js",
        "README.md",
        "LICENSE",
    )


def test_resolve_single_bin_path() -> None:
    descriptor = PackageDescriptor(name="x", bin="cli.js")
    assert resolve_required_files(descriptor) == ("package.json", "cli.js")


def test_resolve_does_not_normalize_or_deduplicate() -> None:
    descriptor = PackageDescriptor(name="x", main="./x", module="x")
    assert resolve_required_files(descriptor, ["x", "package.json"]) == (
        "package.json",
        "./x",
        "x",
        "x",
        "package.json",
    )


@settings(max_examples=50, derandomize=True, deadline=None)
@given(
    main=st.one_of(st.none(), _paths),
    module=st.one_of(st.none(), _paths),
    types=st.one_of(st.none(), _paths),
    bins=st.lists(_paths, max_size=3),
    extra=st.lists(_paths, max_size=4),
)
def test_manifest_always_first_and_extras_always_last(
    main: str | None,
    module: str | None,
    types: str | None,
    bins: list[str],
    extra: list[str],
) -> None:
    descriptor = PackageDescriptor(
        name="x",
        main=main,
        module=module,
        types=types,
        bin={f"b{index}": path for index, path in enumerate(bins)} or None,
    )

    resolved = resolve_required_files(descriptor, extra)

    declared = [path for path in (main, module, types) if path]
    assert resolved[0] == "package.json"
    assert list(resolved[1 : 1 + len(declared)]) == declared
    assert list(resolved[len(resolved) - len(extra) :]) == extra
    assert len(resolved) == 1 + len(declared) + len(bins) + len(extra)


def test_missing_files_is_exhaustive(tmp_path: Path) -> None:
    (tmp_path / "present.js").write_text("", encoding="utf-8")
    files = ("a.js", "present.js", "b.js", "c/d.js")

    assert missing_files(tmp_path, files) == ("a.js", "b.js", "c/d.js")
    assert first_missing_file(tmp_path, files) == "a.js"
    assert first_missing_file(tmp_path, ("present.js",)) is None


def test_env_prefix_catches_variants_but_not_lookalikes(tmp_path: Path) -> None:
    (tmp_path / "myenvfile").write_text("", encoding="utf-8")
    (tmp_path / "envelope.js").write_text("", encoding="utf-8")
    assert find_excluded_entry(tmp_path) is None

    (tmp_path / ".env.local").write_text("SECRET=1", encoding="utf-8")
    assert find_excluded_entry(tmp_path) == ".env.local"


def test_env_variant_detected_without_exact_env(tmp_path: Path) -> None:
    (tmp_path / ".env.production").write_text("", encoding="utf-8")
    assert not (tmp_path / ".env").exists()
    assert find_excluded_entry(tmp_path) == ".env.production"


def test_directory_entries_match_exact_names_only(tmp_path: Path) -> None:
    (tmp_path / "testing").mkdir()
    (tmp_path / "srcmap.js").write_text("", encoding="utf-8")
    assert find_excluded_entry(tmp_path) is None

    (tmp_path / "test").mkdir()
    assert find_excluded_entry(tmp_path) == "test"

    (tmp_path / "src").mkdir()
    assert find_excluded_entry(tmp_path) == "src"
