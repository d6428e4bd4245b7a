from __future__ import annotations

import typing as t

Tree = dict[str, "Tree | None"]


def build_tree(paths: t.Iterable[str]) -> Tree:
    tree: Tree = {}
    for path in paths:
        *dirs, name = path.split("/")
        node = tree
        for d in dirs:
            child = node.get(d)
            if child is None:
                child = node[d] = {}
            node = child
        node.setdefault(name, None)
    return tree


def render_tree(paths: t.Iterable[str]) -> str:
    """Draw file paths as an indented tree.

    >>> print(render_tree(["src/a.py", "src/b/c.py", "README.md"]), end="")
    ├── src
    │   ├── a.py
    │   └── b
    │       └── c.py
    └── README.md
    """
    lines: list[str] = []

    def walk(node: Tree, prefix: str) -> None:
        entries = list(node.items())
        for i, (name, children) in enumerate(entries):
            last = i == len(entries) - 1
            lines.append(f"{prefix}{'└── ' if last else '├── '}{name}")
            if children is not None:
                walk(children, prefix + ("    " if last else "│   "))

    walk(build_tree(paths), "")
    return "".join(f"{line}\n" for line in lines)
