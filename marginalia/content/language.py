"""Which repository files are worth reading, and what they are written in."""

from __future__ import annotations

import posixpath
import typing as t

CodeExtensions: t.Final[frozenset[str]] = frozenset({
    # fmt: off
    ".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx",
    ".py", ".pyx", ".pyi",
    ".java",
    ".c", ".h", ".cc", ".cpp", ".cxx", ".c++", ".hpp",
    ".cs",
    ".php",
    ".rb",
    ".go",
    ".rs",
    ".swift",
    ".kt", ".kts",
    ".scala",
    ".html", ".htm",
    ".css", ".scss", ".sass", ".less",
    ".vue", ".svelte",
    ".json", ".xml", ".toml", ".yml", ".yaml",
    ".md", ".txt",
    ".sql",
    ".sh", ".bash",
    ".dockerfile",
    # fmt: on
})

CodeFilenames: t.Final[frozenset[str]] = frozenset({"Dockerfile", "Makefile"})

DependencyDirectories: t.Final[frozenset[str]] = frozenset({
    "node_modules", "vendor", "dist", "build", "__pycache__", ".venv", "venv", "target", ".git", ".next", "out",
})

LockFiles: t.Final[frozenset[str]] = frozenset({
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "poetry.lock", "Pipfile.lock", "uv.lock", "Cargo.lock",
    "composer.lock", "Gemfile.lock", "go.sum",
})

ArtifactExtensions: t.Final[frozenset[str]] = frozenset({".class", ".pyc", ".o", ".so", ".map"})

# extension -> fence tag for the combined content
FileTypes: t.Final[dict[str, str]] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".html": "html",
    ".css": "css",
    ".vue": "vue",
    ".json": "json",
    ".md": "markdown",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".sh": "bash",
    ".sql": "sql",
}

Languages: t.Final[dict[str, str]] = {
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".pyx": "Python",
    ".pyi": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".cc": "C++",
    ".cxx": "C++",
    ".hpp": "C++",
    ".c": "C",
    ".h": "C",
    ".cs": "C#",
    ".php": "PHP",
    ".rb": "Ruby",
    ".go": "Go",
    ".rs": "Rust",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".scala": "Scala",
    ".html": "HTML",
    ".css": "CSS",
    ".scss": "CSS",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".sh": "Shell",
    ".sql": "SQL",
}


def extension(path: str) -> str:
    return posixpath.splitext(path)[1].lower()


def is_code_file(path: str) -> bool:
    name = posixpath.basename(path)
    return name in CodeFilenames or extension(path) in CodeExtensions


def dependency_directory(path: str) -> str | None:
    """The leading part of `path` up to and including a dependency directory, if it has one."""
    parts = path.split("/")[:-1]
    for i, part in enumerate(parts):
        if part in DependencyDirectories:
            return "/".join(parts[: i + 1]) + "/"
    return None


def is_excluded(path: str) -> bool:
    """Generated, third-party or secret-looking files, which are never read."""
    if dependency_directory(path) is not None:
        return True
    name = posixpath.basename(path)
    lowered = name.lower()
    return (
        name in LockFiles
        or extension(path) in ArtifactExtensions
        or lowered.endswith((".min.js", ".min.css"))
        or lowered.startswith((".env", "id_rsa", "credentials"))
        or lowered.endswith((".pem", ".key"))
    )


def file_type(path: str) -> str:
    if posixpath.basename(path) == "Dockerfile":
        return "dockerfile"
    ext = extension(path)
    return FileTypes.get(ext) or ext.lstrip(".") or "text"


def detect_language(path: str) -> str | None:
    if posixpath.basename(path) == "Dockerfile":
        return "Dockerfile"
    return Languages.get(extension(path))
