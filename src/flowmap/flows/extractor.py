"""Flow extraction over each screen's bounded import closure.

Usage:
    extractor = FlowExtractor(import_depth=2, max_closure_files=25)
    extraction = extractor.extract(screens, contents)

Extraction runs in two passes. The first classifies every line of every
file in the union of screen closures (files are independent, so this pass
is parallel). The second links flows once all of them exist, so a call to a
function defined later in traversal order still produces an edge.

JavaScript and TypeScript files are parsed with tree-sitter for definitions,
their body spans and the names called inside them. Vue files and sources
the grammar rejects use brace counting and invocation patterns instead.
"""

from __future__ import annotations

import re
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Mapping, Optional

from ..exceptions import ErrorCode, ExtractionLimitExceeded
from ..graph.ids import flow_discriminator, flow_id, normalize_path
from ..imports import import_specifiers, is_code_file, resolve_import
from ..logging_config import get_logger
from ..screens.models import Screen
from ..syntax import FileSyntax, SyntaxParser
from .classifier import classify_line, is_comment, snippet
from .models import CodeFlow, FlowExtraction

logger = get_logger(__name__)

_INVOCATION = re.compile(r"(?:(?<![\w$.])|(?<=\bthis\.))([A-Za-z_$][\w$]*)\s*\(")
# onClick={handleSave} binds without invoking
_HANDLER_REFERENCE = re.compile(r"=\s*\{\s*(?:this\.)?([A-Za-z_$][\w$]*)\s*\}")


class FileFlows:
    """First-pass result for one file."""

    def __init__(self, path: str, lines: list[str], syntax: Optional[FileSyntax] = None) -> None:
        self.path = path
        self.lines = lines
        self.syntax = syntax
        self.flows: list[CodeFlow] = []
        # flow id -> (first body line index, last body line index, start column)
        self.bodies: dict[str, tuple[int, int, int]] = {}
        self.truncated = False


class FlowExtractor:
    """Classifies and links code flows reachable from screens.

    Attributes:
        import_depth: Import hops followed from a screen's source file
        max_closure_files: Files visited per screen closure
        max_flows_per_file: Flows kept per file, lowest lines first
        max_body_lines: Longest definition body scanned for calls
        parser: Tree-sitter front end; files it cannot parse use the line scanner
    """

    def __init__(
        self,
        import_depth: int = 2,
        max_closure_files: int = 25,
        max_flows_per_file: int = 200,
        max_body_lines: int = 400,
        max_workers: int = 8,
        parser: Optional[SyntaxParser] = None,
    ) -> None:
        self.import_depth = import_depth
        self.max_closure_files = max_closure_files
        self.max_flows_per_file = max_flows_per_file
        self.max_body_lines = max_body_lines
        self.max_workers = max_workers
        self.parser = parser or SyntaxParser()

    def extract(self, screens: Iterable[Screen], contents: Mapping[str, str]) -> FlowExtraction:
        """Extract flows for ``screens`` from the fetched ``contents``.

        Args:
            screens: Screens whose source files seed the traversal
            contents: Decoded text per path; only these files are visited

        Returns:
            FlowExtraction with flows ordered by (file, line, kind, name)
        """
        contents = {normalize_path(k): v for k, v in contents.items()}
        result = FlowExtraction()
        notes: dict[str, dict] = {}

        closures: dict[str, list[str]] = {}
        for screen in screens:
            closures[screen.id] = self._closure(screen, contents, notes)

        files = sorted({path for closure in closures.values() for path in closure})
        parsed = self._extract_files(files, contents, result)
        for path, file_flows in parsed.items():
            if file_flows.truncated:
                _note(
                    notes,
                    f"flows:{path}",
                    f"Flow limit {self.max_flows_per_file} reached in {path}",
                    file=path,
                    limit=self.max_flows_per_file,
                )

        by_symbol = _index_symbols(parsed)
        for path in sorted(parsed):
            self._link(parsed[path], by_symbol, _direct_imports(path, contents))

        for screen_id, closure in closures.items():
            owned: list[str] = []
            for path in closure:
                if path in parsed:
                    owned.extend(f.id for f in parsed[path].flows)
            result.flows_by_screen[screen_id] = owned

        result.flows = sorted(
            (f for ff in parsed.values() for f in ff.flows), key=CodeFlow.sort_key
        )
        result.files_analyzed = len(parsed)
        result.truncations = [notes[k] for k in sorted(notes)]
        result.skipped_files.sort(key=lambda s: s["path"])
        logger.info(
            f"Extracted {len(result.flows)} flows from {result.files_analyzed} files "
            f"({len(result.truncations)} truncations, {len(result.skipped_files)} skipped)"
        )
        return result

    # -- traversal ----------------------------------------------------------

    def _closure(self, screen: Screen, contents: Mapping[str, str], notes: dict) -> list[str]:
        """Breadth-first import closure of a screen, in visit order."""
        start = screen.source_file
        if start not in contents:
            return []

        visited = [start]
        seen = {start}
        queue: deque[tuple[str, int]] = deque([(start, 0)])
        while queue:
            path, depth = queue.popleft()
            targets = sorted(_direct_imports(path, contents) - seen)
            if not targets:
                continue
            if depth >= self.import_depth:
                _note(
                    notes,
                    f"depth:{screen.id}",
                    f"Import depth limit {self.import_depth} reached",
                    screen=screen.id,
                    file=path,
                    limit=self.import_depth,
                )
                continue
            for target in targets:
                if len(visited) >= self.max_closure_files:
                    _note(
                        notes,
                        f"closure:{screen.id}",
                        f"Closure file limit {self.max_closure_files} reached",
                        screen=screen.id,
                        file=target,
                        limit=self.max_closure_files,
                    )
                    queue.clear()
                    break
                seen.add(target)
                visited.append(target)
                queue.append((target, depth + 1))
        return visited

    # -- first pass ---------------------------------------------------------

    def _extract_files(
        self, files: list[str], contents: Mapping[str, str], result: FlowExtraction
    ) -> dict[str, FileFlows]:
        outcomes: list[tuple[str, Optional[FileFlows], Optional[Exception]]] = []

        if len(files) <= 1 or self.max_workers <= 1:
            for path in files:
                try:
                    outcomes.append((path, self.extract_file(path, contents[path]), None))
                except Exception as e:
                    outcomes.append((path, None, e))
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {
                    executor.submit(self.extract_file, path, contents[path]): path
                    for path in files
                }
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        outcomes.append((path, future.result(), None))
                    except Exception as e:
                        outcomes.append((path, None, e))

        parsed: dict[str, FileFlows] = {}
        for path, file_flows, error in sorted(outcomes, key=lambda o: o[0]):
            if error is not None:
                logger.warning(f"Skipping {path}: {error}")
                result.skipped_files.append(
                    {"path": path, "code": ErrorCode.FM401.value, "reason": str(error)}
                )
            elif file_flows is not None:
                parsed[path] = file_flows
        return parsed

    def extract_file(self, path: str, content: str) -> Optional[FileFlows]:
        """Classify every line of one file. Non-code files yield None."""
        if not is_code_file(path):
            return None

        syntax = self.parser.scan(path, content)
        # Rows must line up with tree-sitter's, which only break on \n
        lines = [line.rstrip("\r") for line in content.split("\n")]
        file_flows = FileFlows(path, lines, syntax)
        for index, line in enumerate(lines):
            if syntax is None:
                match = classify_line(line)
            else:
                found = syntax.definitions.get(index)
                match = classify_line(line, (found.name, found.column) if found else None)
            if match is None:
                continue
            if len(file_flows.flows) >= self.max_flows_per_file:
                file_flows.truncated = True
                break
            line_no = index + 1
            fid = flow_id(path, flow_discriminator(line_no, match.kind, match.name))
            file_flows.flows.append(
                CodeFlow(
                    id=fid,
                    kind=match.kind,
                    name=match.name,
                    source_file=path,
                    line=line_no,
                    snippet=snippet(line),
                    symbol=match.symbol,
                )
            )
            if match.symbol is not None:
                if syntax is None:
                    end = _block_end(lines, index, match.body_start, self.max_body_lines)
                else:
                    last = syntax.definitions[index].end_row
                    end = min(last, index + self.max_body_lines - 1, len(lines) - 1)
                file_flows.bodies[fid] = (index, end, match.body_start)
            else:
                file_flows.bodies[fid] = (index, index, 0)
        return file_flows

    # -- second pass --------------------------------------------------------

    def _link(
        self,
        file_flows: FileFlows,
        by_symbol: Mapping[str, list[CodeFlow]],
        imported_files: set[str],
    ) -> None:
        for flow in file_flows.flows:
            first, last, column = file_flows.bodies[flow.id]
            handler = flow.kind == "ui-event"
            if file_flows.syntax is not None:
                names = file_flows.syntax.names_in(first, column, last, bindings=handler)
            else:
                names = _invoked_names(file_flows.lines, first, last, column, handler)

            calls: set[str] = set()
            for name in names:
                candidates = by_symbol.get(name)
                if not candidates:
                    continue
                local = [c for c in candidates if c.source_file == flow.source_file]
                targets = local or [c for c in candidates if c.source_file in imported_files]
                calls.update(t.id for t in targets)

            if flow.symbol is not None:
                for other in file_flows.flows:
                    if other.symbol is None and first < other.line - 1 <= last:
                        calls.add(other.id)

            flow.calls = sorted(calls)


def _index_symbols(parsed: Mapping[str, FileFlows]) -> dict[str, list[CodeFlow]]:
    by_symbol: dict[str, list[CodeFlow]] = {}
    for path in sorted(parsed):
        for flow in parsed[path].flows:
            if flow.symbol:
                by_symbol.setdefault(flow.symbol, []).append(flow)
    return by_symbol


def _invoked_names(
    lines: list[str], first: int, last: int, column: int, handler: bool
) -> set[str]:
    body_lines = [lines[first][column:]]
    body_lines.extend(lines[first + 1 : last + 1])
    body = "\n".join(line for line in body_lines if not is_comment(line))

    names = set(_INVOCATION.findall(body))
    if handler:
        names.update(_HANDLER_REFERENCE.findall(body))
    return names


def _direct_imports(path: str, contents: Mapping[str, str]) -> set[str]:
    resolved = (resolve_import(s, path, contents) for s in import_specifiers(contents[path]))
    return {r for r in resolved if r}


def _block_end(lines: list[str], start: int, column: int, max_lines: int) -> int:
    """Last line index of the brace/paren-balanced block opened on ``start``.

    Returns ``start`` when the definition line opens nothing (or closes
    everything it opens), and stops after ``max_lines`` lines otherwise.
    """
    depth = 0
    opened = False
    limit = min(len(lines), start + max_lines)
    for index in range(start, limit):
        text = lines[index][column:] if index == start else lines[index]
        quote: Optional[str] = None
        for i, c in enumerate(text):
            if quote:
                if c == quote and text[i - 1] != "\\":
                    quote = None
                continue
            if c in "\"'":
                quote = c
            elif c == "/" and text[i + 1 : i + 2] == "/":
                break
            elif c in "{(":
                depth += 1
                opened = True
            elif c in "})":
                depth = max(depth - 1, 0)
        if index == start and not opened:
            return start
        if opened and depth == 0:
            return index
    return limit - 1


def _note(notes: dict, key: str, message: str, **context) -> None:
    if key not in notes:
        notes[key] = ExtractionLimitExceeded(message, context=context).to_json()
