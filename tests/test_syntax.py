"""Tests for the tree-sitter front end."""

import pytest

from flowmap.syntax import SyntaxParser, grammar_for

COMPONENT = """export default function Page() {
  const load = async () => {
    await refresh();
  };
  const onSave = useCallback(() => load(), []);
  return null;
}
class Store {
  save() {
    this.persist();
  }
}
const api = { get: function () { return 1; } };
"""


class TestGrammarFor:
    @pytest.mark.parametrize(
        "path, grammar",
        [
            ("src/App.tsx", "tsx"),
            ("src/api.ts", "typescript"),
            ("src/App.jsx", "javascript"),
            ("bin/cli.mjs", "javascript"),
            ("pages/index.vue", None),
            ("README.md", None),
        ],
    )
    def test_extensions(self, path, grammar):
        assert grammar_for(path) == grammar


class TestScan:
    def test_definitions_and_body_rows(self):
        syntax = SyntaxParser().scan("src/Page.tsx", COMPONENT)

        assert syntax is not None
        assert {row: (d.name, d.end_row) for row, d in syntax.definitions.items()} == {
            0: ("Page", 6),
            1: ("load", 3),
            4: ("onSave", 4),
            8: ("save", 10),
            12: ("get", 12),
        }
        page = syntax.definitions[0]
        assert COMPONENT.splitlines()[0][: page.column].endswith("Page")

    def test_invocations_by_position(self):
        syntax = SyntaxParser().scan("src/Page.tsx", COMPONENT)
        load = syntax.definitions[1]

        assert syntax.names_in(load.row, load.column, load.end_row) == {"refresh"}
        # this.persist() counts, obj.method() does not
        assert syntax.names_in(8, 0, 10) == {"persist"}
        assert "useCallback" in syntax.names_in(0, 0, 6)

    def test_strings_and_comments_are_not_calls(self):
        content = 'function a() {\n  // b();\n  const s = "c()";\n  d();\n  obj.e();\n}\n'
        syntax = SyntaxParser().scan("src/a.ts", content)
        assert syntax.names_in(0, 10, 5) == {"d"}

    def test_handler_bindings_only_when_asked(self):
        content = "const view = <button onClick={save} onBlur={this.check}>Go</button>;\n"
        syntax = SyntaxParser().scan("src/view.jsx", content)

        assert syntax.definitions == {}
        assert syntax.names_in(0, 0, 0) == set()
        assert syntax.names_in(0, 0, 0, bindings=True) == {"save", "check"}

    def test_unsupported_or_broken_sources(self):
        parser = SyntaxParser()
        assert parser.scan("pages/index.vue", "<template><div /></template>") is None
        assert parser.scan("src/broken.ts", "function broken( {\n") is None
        assert parser.parse("<div>", "typescript") is None
