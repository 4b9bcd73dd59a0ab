import json
from pathlib import Path

import pytest


def write_files(root: Path, files: dict) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


DEMO_PACKAGE = {
    "package.json": json.dumps({"name": "demo", "version": "1.2.3", "main": "lib/demo.js"}),
    "lib/demo.js": (
        'export function start(port, host = "localhost") {}\n'
        'export { Widget } from "./widgets/widget";\n'
    ),
    "lib/widgets/widget.js": (
        "/** A widget. */\n"
        "export class Widget {\n"
        "  constructor(name) {}\n"
        "  render(target) {}\n"
        "}\n"
    ),
    "lib/util/helpers.js": 'export const VERSION = "1";\n',
    "lib/util/deep/hidden.js": "export function hidden() {}\n",
    "types/index.d.ts": "export declare function typed(a: string): void;\n",
    "src/broken.js": "function (\n",
    "README.md": "# demo\n",
}


@pytest.fixture
def search_root(tmp_path) -> Path:
    """A directory whose node_modules holds the ``demo`` package."""
    write_files(tmp_path / "node_modules" / "demo", DEMO_PACKAGE)
    return tmp_path


@pytest.fixture
def demo_root(search_root) -> Path:
    return search_root / "node_modules" / "demo"


@pytest.fixture
def make_files():
    return write_files
