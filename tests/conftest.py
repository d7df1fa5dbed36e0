"""Shared test fixtures for flowmap tests."""

import json

import pytest

from flowmap.persistence import AnalysisRepository, MemoryStore
from flowmap.sources import MemoryTreeSource


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def next_app_files():
    """Small Next.js app-router project."""
    return {
        "package.json": json.dumps(
            {"name": "shop", "dependencies": {"next": "14.0.0", "react": "18.2.0"}}
        ),
        "next.config.js": "module.exports = {};\n",
        "app/page.tsx": (
            'import Link from "next/link";\n'
            "\n"
            "export default function Home() {\n"
            '  return <Link href="/about">About</Link>;\n'
            "}\n"
        ),
        "app/about/page.tsx": (
            "export default function About() {\n"
            '  return <button onClick={() => fetch("/api/items")}>Load</button>;\n'
            "}\n"
        ),
        "app/users/[id]/page.tsx": "export default function User() {\n  return null;\n}\n",
        "README.md": "# shop\n",
    }


@pytest.fixture
def memory_source(next_app_files):
    """Memory source with acme/shop@main published."""
    source = MemoryTreeSource()
    source.put("acme/shop", "main", "commit-1", next_app_files)
    return source


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repository(store):
    return AnalysisRepository(store)
