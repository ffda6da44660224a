from __future__ import annotations

import pytest

from ._gate import require_arch_checks_enabled
from ._utils import iter_python_files, matches_prefix, package_root, parse_imports

# (package, modules it must never import)
_FORBIDDEN: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("core", ("relflow.cli", "relflow.scm", "relflow.exec", "relflow.manifest")),
    ("versions", ("relflow.cli", "relflow.release", "relflow.scm", "relflow.policy")),
    ("policy", ("relflow.cli", "relflow.scm", "relflow.exec", "relflow.manifest")),
    ("release", ("relflow.cli", "relflow.scm", "relflow.exec", "relflow.manifest")),
    ("scm", ("relflow.cli", "relflow.release.phases")),
    ("exec", ("relflow.cli", "relflow.release.phases")),
    ("manifest", ("relflow.cli", "relflow.release.phases")),
)


@pytest.mark.parametrize(("package", "forbidden"), _FORBIDDEN, ids=[p for p, _ in _FORBIDDEN])
def test_layer_does_not_import_upper_layers(package: str, forbidden: tuple[str, ...]) -> None:
    require_arch_checks_enabled()

    root = package_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root / package):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            for prefix in forbidden:
                if matches_prefix(item.module, prefix):
                    offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{package} layering violations:\n" + "\n".join(offenders)
