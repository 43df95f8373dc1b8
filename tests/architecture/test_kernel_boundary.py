"""
Kernel boundary contract.

1. ledger_kernel/** may NOT import ledger_config or ledger_services.
   The kernel never depends upward.

2. ledger_config/** may NOT import ledger_services.

3. ledger_kernel/domain/** may NOT import SQLAlchemy.  The hierarchy
   resolver and the balance aggregator operate on plain records.

4. No logging call passes a LogRecord attribute name as an ``extra`` key.

These tests read source code via AST -- they cannot break anything.
"""

import ast
import logging
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _python_files(package: str) -> list[Path]:
    return sorted((PROJECT_ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.level == 0:
                results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    rel = filepath.relative_to(PROJECT_ROOT)
                    found.append(f"  {rel}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestKernelNoUpwardDependencies:
    def test_packages_present(self):
        assert _python_files("ledger_kernel")
        assert _python_files("ledger_config")

    def test_kernel_does_not_import_outer_layers(self):
        violations = _violations("ledger_kernel", ("ledger_config", "ledger_services"))
        assert not violations, (
            "Kernel boundary violation: ledger_kernel/** must not import "
            "ledger_config or ledger_services:\n" + "\n".join(violations)
        )

    def test_config_does_not_import_services(self):
        violations = _violations("ledger_config", ("ledger_services",))
        assert not violations, "\n".join(violations)


class TestPureDomain:
    def test_domain_does_not_import_sqlalchemy(self):
        violations = _violations("ledger_kernel/domain", ("sqlalchemy",))
        assert not violations, (
            "ledger_kernel/domain/** must stay free of SQLAlchemy:\n"
            + "\n".join(violations)
        )


# LogRecord attributes; logging refuses to overwrite them through ``extra``
_RESERVED_LOG_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _reserved_extra_keys(package: str) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))
        for node in ast.walk(tree):
            if not isinstance(node, ast.Call):
                continue
            for keyword in node.keywords:
                if keyword.arg != "extra" or not isinstance(keyword.value, ast.Dict):
                    continue
                for key in keyword.value.keys:
                    if isinstance(key, ast.Constant) and key.value in _RESERVED_LOG_KEYS:
                        rel = filepath.relative_to(PROJECT_ROOT)
                        found.append(f"  {rel}:{key.lineno} extra key '{key.value}'")
    return found


class TestLogExtraKeys:
    def test_no_reserved_log_record_keys(self):
        violations = []
        for package in ("ledger_kernel", "ledger_config", "ledger_services"):
            violations.extend(_reserved_extra_keys(package))
        assert not violations, (
            "extra= keys collide with LogRecord attributes:\n" + "\n".join(violations)
        )
