"""Static import parsing and resolution for JS/TS/Vue sources.

Only literal specifiers are considered. Relative specifiers (``./x``,
``../x``) resolve against the importing file; ``@/`` and ``~/`` aliases
resolve against ``src/`` first and the repository root second. Bare package
specifiers are external and never resolve.
"""

from __future__ import annotations

import posixpath
import re
from typing import Collection, Optional

CODE_EXTENSIONS: tuple[str, ...] = (".tsx", ".ts", ".jsx", ".js", ".mjs", ".cjs", ".vue")

_IMPORT_FROM = re.compile(
    r"""^\s*(?:import|export)\s+(?:type\s+)?([^;()]*?)\s+from\s+["']([^"'\n]+)["']""",
    re.MULTILINE,
)
_SIDE_EFFECT_IMPORT = re.compile(r"""^\s*import\s+["']([^"'\n]+)["']""", re.MULTILINE)
_DYNAMIC_IMPORT = re.compile(r"""\bimport\s*\(\s*["']([^"'\n]+)["']\s*\)""")
_REQUIRE = re.compile(r"""\brequire\s*\(\s*["']([^"'\n]+)["']\s*\)""")
_LAZY_BINDING = re.compile(
    r"""\b(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*=\s*(?:React\.)?lazy\s*\(\s*\(\s*\)\s*=>\s*"""
    r"""import\s*\(\s*["']([^"'\n]+)["']"""
)


def is_code_file(path: str) -> bool:
    return path.endswith(CODE_EXTENSIONS)


def import_specifiers(content: str) -> list[str]:
    """All literal import specifiers in ``content``, in source order, unique."""
    found: list[tuple[int, str]] = []
    for m in _IMPORT_FROM.finditer(content):
        found.append((m.start(2), m.group(2)))
    for pattern in (_SIDE_EFFECT_IMPORT, _DYNAMIC_IMPORT, _REQUIRE):
        for m in pattern.finditer(content):
            found.append((m.start(1), m.group(1)))
    found.sort()

    seen: set[str] = set()
    result = []
    for _, specifier in found:
        if specifier not in seen:
            seen.add(specifier)
            result.append(specifier)
    return result


def imported_bindings(content: str) -> dict[str, str]:
    """Map locally bound names to the specifier they were imported from.

    Covers default, named (with ``as`` renames), namespace and
    ``lazy(() => import(...))`` bindings.
    """
    bindings: dict[str, str] = {}
    for m in _IMPORT_FROM.finditer(content):
        clause, specifier = m.group(1), m.group(2)
        if clause.startswith("{") or "{" not in clause:
            default_part, named_part = ("", clause) if clause.startswith("{") else (clause, "")
        else:
            default_part, _, named_part = clause.partition(",")
            named_part = named_part.strip()
        default_part = default_part.strip().rstrip(",").strip()
        if default_part.startswith("* as "):
            bindings[default_part[5:].strip()] = specifier
        elif default_part and re.fullmatch(r"[A-Za-z_$][\w$]*", default_part):
            bindings[default_part] = specifier
        if named_part.startswith("{"):
            inner = named_part.strip("{} \n")
            for item in inner.split(","):
                item = item.strip()
                if not item:
                    continue
                if item.startswith("type "):
                    item = item[5:]
                local = item.split(" as ")[-1].strip()
                if re.fullmatch(r"[A-Za-z_$][\w$]*", local):
                    bindings[local] = specifier
        elif named_part.startswith("* as "):
            bindings[named_part[5:].strip()] = specifier
    for m in _LAZY_BINDING.finditer(content):
        bindings[m.group(1)] = m.group(2)
    return bindings


def _candidates(base: str) -> list[str]:
    base = posixpath.normpath(base)
    if base.startswith("../") or base == "..":
        return []
    if base == ".":
        base = ""
    options = [base] if base.endswith(CODE_EXTENSIONS) else []
    options.extend(base + ext for ext in CODE_EXTENSIONS)
    prefix = base + "/" if base else ""
    options.extend(prefix + "index" + ext for ext in CODE_EXTENSIONS)
    return options


def resolve_import(specifier: str, importer: str, known: Collection[str]) -> Optional[str]:
    """Resolve ``specifier`` imported from ``importer`` to a path in ``known``."""
    if specifier.startswith("./") or specifier.startswith("../") or specifier in (".", ".."):
        bases = [posixpath.join(posixpath.dirname(importer), specifier)]
    elif specifier.startswith("@/") or specifier.startswith("~/"):
        rest = specifier[2:]
        bases = [posixpath.join("src", rest), rest]
    elif specifier.startswith("/"):
        bases = [specifier.lstrip("/")]
    else:
        return None

    for base in bases:
        for candidate in _candidates(base):
            if candidate in known:
                return candidate
    return None
