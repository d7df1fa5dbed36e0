"""Tests for navigation target and import extraction."""

from flowmap.imports import import_specifiers, imported_bindings, resolve_import
from flowmap.screens import extract_navigation_links
from flowmap.screens.react_router import element_component, parse_jsx_routes


class TestNavigationLinks:
    def test_literal_targets(self):
        content = """
router.push("/checkout");
navigate('/orders/new');
history.replace(`/login`);
<Link to="/about">About</Link>
<NavLink to={"/settings"}>Settings</NavLink>
<a href="/help?topic=x#faq">Help</a>
"""
        assert extract_navigation_links(content) == [
            "/about",
            "/checkout",
            "/help",
            "/login",
            "/orders/new",
            "/settings",
        ]

    def test_interpolated_and_external_targets_dropped(self):
        content = """
router.push(`/users/${id}`);
<a href="https://example.com">x</a>
<a href="//cdn.example.com/x">y</a>
navigate(target);
"""
        assert extract_navigation_links(content) == []

    def test_trailing_slash_and_duplicates(self):
        content = 'router.push("/cart/"); router.push("/cart");'
        assert extract_navigation_links(content) == ["/cart"]


class TestImports:
    def test_specifiers_in_source_order(self):
        content = """
import React from "react";
import { a,
  b } from "./multi";
import "./styles.css";
const Lazy = lazy(() => import("./Lazy"));
const fs = require("fs");
export { c } from "../shared/c";
"""
        assert import_specifiers(content) == [
            "react",
            "./multi",
            "./styles.css",
            "./Lazy",
            "fs",
            "../shared/c",
        ]

    def test_bindings(self):
        content = """
import Default, { named, other as alias } from "./mod";
import * as ns from "./ns";
const Page = React.lazy(() => import("./Page"));
"""
        assert imported_bindings(content) == {
            "Default": "./mod",
            "named": "./mod",
            "alias": "./mod",
            "ns": "./ns",
            "Page": "./Page",
        }

    def test_resolve_relative_with_extension_and_index(self):
        known = {"src/lib/api.ts", "src/components/Button/index.tsx"}
        assert resolve_import("./lib/api", "src/App.tsx", known) == "src/lib/api.ts"
        assert (
            resolve_import("../components/Button", "src/pages/Home.tsx", known)
            == "src/components/Button/index.tsx"
        )

    def test_resolve_aliases(self):
        known = {"src/utils/format.ts", "lib/db.ts"}
        assert resolve_import("@/utils/format", "src/a/b.tsx", known) == "src/utils/format.ts"
        assert resolve_import("~/lib/db", "pages/x.vue", known) == "lib/db.ts"

    def test_bare_and_escaping_specifiers_unresolved(self):
        known = {"react.ts", "x.ts"}
        assert resolve_import("react", "src/App.tsx", known) is None
        assert resolve_import("../../x", "a.ts", known) is None


class TestJsxRoutes:
    def test_element_component_looks_through_wrappers(self):
        tag = "<Route path=\"/admin\" element={<ProtectedRoute><Admin /></ProtectedRoute>} />"
        assert element_component(tag) == ("Admin", False)

    def test_element_component_suspense(self):
        tag = '<Route path="/x" element={<Suspense fallback={<Spinner />}><X /></Suspense>} />'
        assert element_component(tag) == ("X", False)

    def test_navigate_is_skipped(self):
        assert element_component('<Route path="/" element={<Navigate to="/home" />} />') == (
            None,
            True,
        )

    def test_component_prop(self):
        assert element_component('<Route path="/y" Component={Y} />') == ("Y", False)

    def test_relative_paths_join_parents(self):
        content = """
<Route path="/shop" element={<Shop />}>
  <Route path="items" element={<Items />}>
    <Route path=":itemId" element={<Item />} />
  </Route>
</Route>
"""
        entries = parse_jsx_routes(content)
        assert [(e.full_path, e.component) for e in entries] == [
            ("/shop", "Shop"),
            ("/shop/items", "Items"),
            ("/shop/items/:itemId", "Item"),
        ]

    def test_commented_out_routes_ignored(self):
        content = """
const routes = (
  <Routes>
    {/* <Route path="/old" element={<Old />} /> */}
    <Route path="/" element={<Home />} />
    <Route path={"/x"} element={<Suspense fallback={<Spinner />}><X /></Suspense>} />
    <Route path="/y" Component={Y} />
  </Routes>
);
"""
        entries = parse_jsx_routes(content)
        assert [(e.full_path, e.component, e.skip) for e in entries] == [
            ("/", "Home", False),
            ("/x", "X", False),
            ("/y", "Y", False),
        ]

    def test_index_and_layout_routes(self):
        content = """
<Route path="/admin" element={<AdminLayout />}>
  <Route index element={<Dashboard />} />
  <Route index={false} element={<Hidden />} />
</Route>
"""
        entries = parse_jsx_routes(content, "javascript")
        assert [(e.full_path, e.component, e.skip) for e in entries] == [
            ("/admin", None, True),
            ("/admin", "Dashboard", False),
            ("/admin", "Hidden", True),
        ]

    def test_unparseable_file_is_scanned_by_tag(self):
        content = '<Route path="/a" element={<A />} />\n<Route path="/b" element={<B />}\n'
        entries = parse_jsx_routes(content)
        assert [(e.full_path, e.component) for e in entries] == [("/a", "A")]
