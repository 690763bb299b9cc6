"""Path conventions shared by the analysis components.

Contains:
- normalize_path, path_segments, path_tokens: Path splitting helpers
- base_stem, subject_stem: Module stems used to pair files
- is_test_path, is_docs_path, is_config_path, is_deployment_path: Path predicates
- is_dependency_manifest, is_lockfile, is_critical_path: Files that need care
- is_source_path: Files written in a programming language
"""

import re
from pathlib import PurePosixPath


SOURCE_EXTENSIONS = {
    ".py", ".pyi",
    ".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue", ".svelte",
    ".java", ".kt", ".kts", ".scala", ".cs",
    ".go", ".rs", ".rb", ".php", ".swift",
    ".c", ".h", ".cc", ".cpp", ".cxx", ".hpp",
    ".sh", ".bash",
}

DOC_EXTENSIONS = {".md", ".rst", ".txt", ".adoc", ".asciidoc", ".mdx"}
DOC_DIRS = {"docs", "doc", "documentation", "wiki"}
DOC_STEMS = {"readme", "changelog", "license", "contributing", "authors", "history"}

TEST_DIRS = {"test", "tests", "spec", "specs", "__tests__", "testing"}

CONFIG_EXTENSIONS = {".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf", ".properties", ".env"}
CONFIG_TOKENS = {
    "config", "configs", "configuration", "settings", "env",
    "tsconfig", "eslintrc", "prettierrc", "babelrc", "editorconfig",
}

# Extension groups treated as the same configuration family
CONFIG_FAMILIES = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".cfg": "ini",
    ".conf": "ini",
    ".properties": "ini",
    ".env": "env",
}

DEPENDENCY_MANIFESTS = {
    "package.json", "pyproject.toml", "requirements.txt", "pipfile", "setup.py", "setup.cfg",
    "go.mod", "cargo.toml", "gemfile", "composer.json", "pom.xml", "build.gradle", "build.gradle.kts",
}

LOCKFILES = {
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "poetry.lock", "pipfile.lock",
    "cargo.lock", "gemfile.lock", "composer.lock", "go.sum", "uv.lock",
}

DEPLOYMENT_DIRS = {
    "deploy", "deployment", "deployments", "k8s", "kubernetes", "helm", "charts",
    "terraform", "ansible", ".circleci",
}

# Build scripts, some of which carry documentation-like extensions
BUILD_FILES = {"cmakelists.txt", "makefile", "gnumakefile", "meson.build", "build.ninja"}

MIGRATION_DIRS = {"migrations", "migration", "alembic", "migrate"}

_TOKEN_SPLIT_RE = re.compile(r"[/._\-\s]+")
_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_TEST_MARKER_RE = re.compile(r"(^[Tt]est_|^Test(?=[A-Z])|_test$|_spec$|Test$|Tests$|Spec$)")


def normalize_path(path: str) -> str:
    """Normalize a file path to forward slashes without a leading "./"."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def path_segments(path: str) -> list[str]:
    """Lowercased directory and file segments of a path."""
    return [part for part in normalize_path(path).lower().split("/") if part]


def path_tokens(path: str) -> set[str]:
    """Lowercased word tokens of a path.

    Splits on separators and camelCase boundaries, so
    "src/authService.ts" yields {"src", "auth", "service", "ts"}.
    """
    spaced = _CAMEL_RE.sub(r"\1 \2", normalize_path(path))
    return {token.lower() for token in _TOKEN_SPLIT_RE.split(spaced) if token}


def file_name(path: str) -> str:
    return normalize_path(path).rsplit("/", 1)[-1]


def extension(path: str) -> str:
    """Lowercased final extension, or "" (".env" files count as ".env")."""
    name = file_name(path).lower()
    if name.startswith(".env"):
        return ".env"
    return PurePosixPath(name).suffix


def directory(path: str) -> str:
    normalized = normalize_path(path)
    return normalized.rsplit("/", 1)[0] if "/" in normalized else ""


def base_stem(path: str) -> str:
    """Filename up to its first dot, lowercased ("auth.test.ts" -> "auth")."""
    name = file_name(path)
    return name.split(".", 1)[0].lower() if not name.startswith(".") else name.lower()


def subject_stem(path: str) -> str:
    """Stem of the module a test file covers, with test markers removed.

    "test_auth.py", "auth_test.go", "auth.test.ts" and "AuthTest.java"
    all yield "auth".
    """
    name = file_name(path)
    stem = name.split(".", 1)[0]
    stem = _TEST_MARKER_RE.sub("", stem)
    return stem.lower()


# ============================================================
# Path predicates
# ============================================================

def is_test_path(path: str) -> bool:
    """Check if a file follows test naming conventions."""
    segments = path_segments(path)
    if not segments:
        return False
    if any(part in TEST_DIRS for part in segments[:-1]):
        return True
    name = segments[-1]
    stem = name.split(".", 1)[0]
    return (
        name.startswith("test_")
        or stem.endswith(("_test", "_spec"))
        or ".test." in name
        or ".spec." in name
        or file_name(path).split(".", 1)[0].endswith("Test")
    )


def is_docs_path(path: str) -> bool:
    """Check if a file is documentation."""
    segments = path_segments(path)
    if not segments:
        return False
    if extension(path) in DOC_EXTENSIONS and not (is_dependency_manifest(path) or is_deployment_path(path)):
        return True
    if base_stem(path) in DOC_STEMS:
        return True
    return any(part in DOC_DIRS for part in segments[:-1])


def is_dependency_manifest(path: str) -> bool:
    name = file_name(path).lower()
    return name in DEPENDENCY_MANIFESTS or (name.startswith("requirements") and name.endswith(".txt"))


def is_lockfile(path: str) -> bool:
    return file_name(path).lower() in LOCKFILES


def is_deployment_path(path: str) -> bool:
    """Check if a file describes how the project is built, shipped or deployed."""
    normalized = normalize_path(path).lower()
    name = file_name(path).lower()
    if name.startswith("dockerfile") or name.endswith(".dockerfile"):
        return True
    if name.startswith(("docker-compose", "compose.")) and name.endswith((".yml", ".yaml")):
        return True
    if name in {"jenkinsfile", ".gitlab-ci.yml", "procfile"}:
        return True
    if name in BUILD_FILES or extension(path) == ".cmake":
        return True
    if ".github/workflows/" in normalized:
        return True
    if extension(path) in {".tf", ".tfvars"}:
        return True
    return any(part in DEPLOYMENT_DIRS for part in path_segments(path)[:-1])


def is_config_path(path: str) -> bool:
    """Check if a file is configuration (deployment files excluded)."""
    if is_deployment_path(path):
        return False
    if is_dependency_manifest(path) or is_lockfile(path):
        return True
    if extension(path) in CONFIG_EXTENSIONS:
        return True
    name = file_name(path).lower()
    if name.startswith(".") and name.endswith("rc"):
        return True
    return bool(path_tokens(path) & CONFIG_TOKENS)


def config_family(path: str) -> str:
    """Configuration family of a file, by extension."""
    if is_dependency_manifest(path) or is_lockfile(path):
        return "dependencies"
    return CONFIG_FAMILIES.get(extension(path), extension(path) or file_name(path).lower())


def is_source_path(path: str) -> bool:
    return extension(path) in SOURCE_EXTENSIONS


def is_migration_path(path: str) -> bool:
    return any(part in MIGRATION_DIRS for part in path_segments(path)[:-1])


def is_critical_path(path: str) -> bool:
    """Check if changes to a file deserve extra care regardless of size.

    Package manifests and lockfiles, container definitions, environment
    files and database migrations.
    """
    name = file_name(path).lower()
    if is_dependency_manifest(path) or is_lockfile(path):
        return True
    if name.startswith("dockerfile") or (name.startswith("docker-compose") and name.endswith((".yml", ".yaml"))):
        return True
    if name.startswith(".env"):
        return True
    return is_migration_path(path)
