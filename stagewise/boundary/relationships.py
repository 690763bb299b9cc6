"""File relationship detection between changed files.

Contains:
- Import extraction (ast for Python, regex for other languages) on diff lines
- FileFeatures: Per-file features precomputed once per analysis
- relate_* functions: One scorer per relationship type
- RelationshipAnalyzer: Evaluates every pair of changed files

Relationships feed the boundary builder: strongly related files end up in
the same commit.
"""

import ast
import logging
import math
import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.models import FileRelationship, GitChange, RelationType
from stagewise.boundary.paths import (
    base_stem,
    config_family,
    directory,
    extension,
    is_config_path,
    is_test_path,
    normalize_path,
    path_segments,
    subject_stem,
)
from stagewise.boundary.symbols import defined_names, identifier_tokens

logger = logging.getLogger(__name__)


# Minimum strength (exclusive) for a relationship of each type to be emitted
EMISSION_THRESHOLDS = {
    RelationType.IMPORT: 0.3,
    RelationType.TEST_PAIR: 0.7,
    RelationType.SIMILAR_CHANGES: 0.4,
    RelationType.SHARED_FUNCTION: 0.3,
    RelationType.CONFIG_RELATED: 0.5,
}

_RELATION_ORDER = {relation: i for i, relation in enumerate(RelationType)}

# Stems too common to identify a module on their own
GENERIC_STEMS = {
    "index", "main", "__init__", "__main__", "mod", "lib", "app", "utils", "util", "helpers",
    "types", "common", "config", "constants", "setup", "package", "test", "tests", "base",
}

# Definitions too common to say two files share behaviour
TRIVIAL_DEFINITIONS = {
    "__init__", "__repr__", "__str__", "__eq__", "__hash__", "constructor", "main", "init",
    "run", "render", "setup", "teardown", "setUp", "tearDown", "toString", "get", "set",
}

MIN_MENTION_STEM_LENGTH = 4
MIN_SIMILARITY_TOKENS = 3

# Pair counts below this are evaluated on the calling thread
PARALLEL_MIN_PAIRS = 64


# ============================================================
# Import extraction
# ============================================================

def extract_python_imports(lines: Sequence[str]) -> list[str]:
    """Extract imported module paths from Python diff lines using ast.

    Each import line is parsed on its own, so partial hunks work. Relative
    imports keep their leading dots (from .auth import x -> ".auth").

    Args:
        lines: Source lines without diff markers.

    Returns:
        List of dotted module paths.
    """
    imports: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(("import ", "from ")):
            continue
        try:
            tree = ast.parse(stripped.rstrip("(\\").rstrip())
        except (SyntaxError, ValueError):
            match = re.match(r"from\s+(\.*[\w.]*)\s+import|import\s+([\w.]+)", stripped)
            if match:
                imports.append(match.group(1) or match.group(2))
            continue
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                imports.extend(alias.name for alias in node.names)
            elif isinstance(node, ast.ImportFrom):
                prefix = "." * node.level
                if node.module:
                    imports.append(prefix + node.module)
                else:
                    # from . import auth, session
                    imports.extend(prefix + alias.name for alias in node.names)
    return imports


_JS_IMPORTS = [
    re.compile(r'''(?:import|from)\s+['"]([^'"]+)['"]'''),
    re.compile(r'''require\(\s*['"]([^'"]+)['"]\s*\)'''),
    re.compile(r'''import\(\s*['"]([^'"]+)['"]\s*\)'''),
]
_JVM_IMPORTS = [
    re.compile(r'^\s*import\s+(?:static\s+)?([\w.]+)', re.MULTILINE),
]
_C_INCLUDES = [
    re.compile(r'^\s*#include\s+[<"]([^>"]+)[>"]', re.MULTILINE),
]

# Map of file extension -> regex patterns capturing the imported module in group 1
IMPORT_PATTERNS: dict[str, list[re.Pattern]] = {
    **{ext: _JS_IMPORTS for ext in (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue", ".svelte")},
    ".java": _JVM_IMPORTS,
    ".kt": _JVM_IMPORTS,
    ".scala": _JVM_IMPORTS,
    # Go: single-line imports and entries of an import block
    ".go": [re.compile(r'''^\s*(?:import\s+)?(?:[\w.]+\s+)?"([\w./\-]+)"\s*$''', re.MULTILINE)],
    ".rs": [re.compile(r'^\s*(?:pub\s+)?(?:use|mod)\s+([\w:]+)', re.MULTILINE)],
    ".rb": [re.compile(r'''^\s*(?:require|require_relative|load)\s+['"]([^'"]+)['"]''', re.MULTILINE)],
    **{ext: _C_INCLUDES for ext in (".c", ".h", ".cc", ".cpp", ".cxx", ".hpp")},
    ".swift": [re.compile(r'^\s*import\s+(\w+)', re.MULTILINE)],
}


def extract_imports_regex(source: str, file_ext: str) -> list[str]:
    """Extract import paths from source text using per-extension regexes.

    Args:
        source: Source text (diff lines joined with newlines).
        file_ext: File extension including dot (e.g., ".js", ".java").

    Returns:
        List of imported module/path strings.
    """
    imports: list[str] = []
    for pattern in IMPORT_PATTERNS.get(file_ext, []):
        imports.extend(pattern.findall(source))
    return imports


def extract_imports(change: GitChange) -> list[str]:
    """Extract imports from every line of a change's hunks."""
    lines = [ln.content for hunk in change.hunks for ln in hunk.lines]
    ext = extension(change.path)
    if ext in (".py", ".pyi"):
        return extract_python_imports(lines)
    return extract_imports_regex("\n".join(lines), ext)


def import_to_module_path(module: str) -> str:
    """Normalize an import string to a slash-separated module path.

    "./services/auth" -> "services/auth", "app.services.auth" ->
    "app/services/auth", "crate::auth::login" -> "auth/login",
    "utils/format.h" -> "utils/format".
    """
    module = module.strip()
    if "/" not in module and "::" not in module:
        module = module.lstrip(".").replace(".", "/")
    module = module.replace("::", "/")
    parts = [p for p in module.split("/") if p not in ("", ".", "..", "crate", "super", "self", "@")]
    if parts:
        last = parts[-1]
        if "." in last:
            parts[-1] = last.split(".", 1)[0]
    return "/".join(parts).lower()


# ============================================================
# Per-file features
# ============================================================

@dataclass(frozen=True)
class FileFeatures:
    """Features of one changed file, computed once and read by all pair scorers."""

    index: int
    path: str
    module_name: str  # Stem, or the directory name for index/__init__/mod files
    module_path: str  # Path without extension, lowercased
    imports: tuple[str, ...]  # Normalized module paths
    changed_text: str  # Added and removed lines joined
    tokens: Counter
    token_norm: float
    definitions: frozenset[str]
    is_test: bool
    subject: str  # For test files: stem of the module under test
    stem: str
    directory: str
    is_config: bool
    config_family: str

    @classmethod
    def from_change(cls, index: int, change: GitChange) -> "FileFeatures":
        path = normalize_path(change.path)
        stem = base_stem(path)
        dir_path = directory(path)
        module_name = stem
        module_path = (dir_path + "/" + stem if dir_path else stem).lower()
        if stem in ("index", "__init__", "mod") and dir_path:
            module_name = dir_path.rsplit("/", 1)[-1].lower()
            module_path = dir_path.lower()

        readable = change.content_readable
        added = change.added_lines if readable else []
        removed = change.removed_lines if readable else []
        tokens = identifier_tokens(added)
        norm = math.sqrt(sum(v * v for v in tokens.values()))
        definitions = defined_names(added + removed, path) if readable else set()
        test = is_test_path(path)

        return cls(
            index=index,
            path=change.path,
            module_name=module_name,
            module_path=module_path,
            imports=tuple(import_to_module_path(m) for m in extract_imports(change)) if readable else (),
            changed_text="\n".join(added + removed),
            tokens=tokens,
            token_norm=norm,
            definitions=frozenset(definitions),
            is_test=test,
            subject=subject_stem(path) if test else "",
            stem=stem,
            directory=dir_path,
            is_config=is_config_path(path),
            config_family=config_family(path),
        )


def _import_resolves(module: str, target: FileFeatures) -> bool:
    """Check whether a normalized import refers to the target file."""
    if not module:
        return False
    last = module.rsplit("/", 1)[-1]
    if last != target.module_name.lower():
        return False
    if target.module_name.lower() not in GENERIC_STEMS:
        return True
    # Generic names need the directory to match as well
    tail = "/".join(target.module_path.split("/")[-2:])
    return module.endswith(tail) and "/" in tail


def _mentions(source: FileFeatures, target: FileFeatures) -> bool:
    name = target.module_name
    if len(name) < MIN_MENTION_STEM_LENGTH or name.lower() in GENERIC_STEMS:
        return False
    pattern = r"(?<![A-Za-z0-9_])" + re.escape(name) + r"(?![A-Za-z0-9_])"
    return re.search(pattern, source.changed_text, re.IGNORECASE) is not None


def _directional_import_strength(source: FileFeatures, target: FileFeatures) -> tuple[float, str]:
    for module in source.imports:
        if _import_resolves(module, target):
            return 0.8, f"{source.path} imports {module}"
    if _mentions(source, target):
        return 0.6, f"{source.path} mentions {target.module_name}"
    return 0.0, ""


# ============================================================
# Pair scorers
# ============================================================

def relate_import(a: FileFeatures, b: FileFeatures) -> Optional[tuple[float, str]]:
    """Import or name reference in either direction."""
    forward, forward_evidence = _directional_import_strength(a, b)
    backward, backward_evidence = _directional_import_strength(b, a)
    if forward <= 0 and backward <= 0:
        return None
    strength = max(forward, backward)
    if forward > 0 and backward > 0:
        strength = min(1.0, strength + 0.2)
    evidence = "; ".join(e for e in (forward_evidence, backward_evidence) if e)
    return strength, evidence


def relate_similar_changes(a: FileFeatures, b: FileFeatures, threshold: float) -> Optional[tuple[float, str]]:
    """Cosine similarity of the identifiers on added lines."""
    if len(a.tokens) < MIN_SIMILARITY_TOKENS or len(b.tokens) < MIN_SIMILARITY_TOKENS:
        return None
    if not a.token_norm or not b.token_norm:
        return None
    common = set(a.tokens) & set(b.tokens)
    dot = sum(a.tokens[t] * b.tokens[t] for t in common)
    similarity = dot / (a.token_norm * b.token_norm)
    if similarity < threshold:
        return None
    shared = sorted(common, key=lambda t: (-(a.tokens[t] + b.tokens[t]), t))[:5]
    return 0.8 * similarity, f"similarity {similarity:.2f} (shared: {', '.join(shared)})"


def relate_shared_function(a: FileFeatures, b: FileFeatures) -> Optional[tuple[float, str]]:
    """Functions or classes defined in both diffs."""
    common = (a.definitions & b.definitions) - TRIVIAL_DEFINITIONS
    if not common:
        return None
    ratio = len(common) / max(len(a.definitions), len(b.definitions))
    return 0.3 + 0.6 * ratio, f"both define {', '.join(sorted(common))}"


def _mirrored(test: FileFeatures, source: FileFeatures) -> bool:
    """tests/x/test_y.py <-> src/x/y.py style directory mirroring."""
    test_dirs = [p for p in path_segments(test.path)[:-1] if p not in ("test", "tests", "spec", "specs", "__tests__")]
    source_dirs = [p for p in path_segments(source.path)[:-1] if p not in ("src", "lib", "app")]
    return test_dirs == source_dirs


def relate_test_pair(a: FileFeatures, b: FileFeatures) -> Optional[tuple[float, str]]:
    """A test file and the module it covers."""
    if a.is_test == b.is_test:
        return None
    test, source = (a, b) if a.is_test else (b, a)
    if not test.subject or test.subject != source.stem:
        return None
    if _mirrored(test, source) or test.directory == source.directory:
        return 0.95, f"{test.path} tests {source.path} (mirrored layout)"
    return 0.9, f"{test.path} tests {source.path}"


def relate_config(a: FileFeatures, b: FileFeatures) -> Optional[tuple[float, str]]:
    """Two configuration files."""
    if not (a.is_config and b.is_config):
        return None
    if a.directory == b.directory:
        return 0.8, "configuration files in the same directory"
    if a.config_family == b.config_family:
        return 0.7, f"{a.config_family} configuration files"
    return 0.55, "configuration files"


# ============================================================
# Analyzer
# ============================================================

class RelationshipAnalyzer:
    """Build the weighted relationship list over all pairs of changed files."""

    def __init__(self, config: Optional[BoundaryConfig] = None):
        self.config = config or BoundaryConfig()

    def is_degraded(self, file_count: int) -> bool:
        """Whether only path-based relationships are evaluated for this many files."""
        return file_count > self.config.max_files_for_full_analysis

    def analyze(self, changes: Sequence[GitChange]) -> list[FileRelationship]:
        """Evaluate every unordered pair of changes.

        Args:
            changes: The change-set, in input order.

        Returns:
            Relationships sorted by descending strength, then input order.
        """
        degraded = self.is_degraded(len(changes))
        if degraded:
            logger.warning(
                "%d files exceed the full analysis limit (%d); only path-based relationships are evaluated",
                len(changes), self.config.max_files_for_full_analysis,
            )

        features = [FileFeatures.from_change(i, change) for i, change in enumerate(changes)]
        pairs = [(i, j) for i in range(len(features)) for j in range(i + 1, len(features))]
        slots = self._evaluate_pairs(features, pairs, degraded)

        relationships = [rel for slot in slots for rel in slot]
        index = {f.path: f.index for f in features}
        relationships.sort(
            key=lambda r: (-r.strength, index[r.file_a], index[r.file_b], _RELATION_ORDER[r.relation_type])
        )
        logger.debug("Found %d relationships across %d pairs", len(relationships), len(pairs))
        return relationships

    def _evaluate_pairs(
        self,
        features: list[FileFeatures],
        pairs: list[tuple[int, int]],
        degraded: bool,
    ) -> list[list[FileRelationship]]:
        # Each pair owns one slot; workers never write outside their range
        slots: list[list[FileRelationship]] = [[] for _ in pairs]
        workers = min(self.config.workers, max(1, len(pairs)))

        if workers <= 1 or len(pairs) < PARALLEL_MIN_PAIRS:
            self._evaluate_range(features, pairs, slots, 0, len(pairs), degraded)
            return slots

        chunk = math.ceil(len(pairs) / workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._evaluate_range, features, pairs, slots, start, min(start + chunk, len(pairs)), degraded)
                for start in range(0, len(pairs), chunk)
            ]
            for future in futures:
                future.result()
        return slots

    def _evaluate_range(
        self,
        features: list[FileFeatures],
        pairs: list[tuple[int, int]],
        slots: list[list[FileRelationship]],
        start: int,
        stop: int,
        degraded: bool,
    ) -> None:
        for k in range(start, stop):
            i, j = pairs[k]
            slots[k] = self.evaluate_pair(features[i], features[j], degraded)

    def evaluate_pair(self, a: FileFeatures, b: FileFeatures, degraded: bool = False) -> list[FileRelationship]:
        """Evaluate each relationship type for one pair; a failing scorer is skipped."""
        scorers = [
            (RelationType.TEST_PAIR, lambda: relate_test_pair(a, b)),
            (RelationType.CONFIG_RELATED, lambda: relate_config(a, b)),
        ]
        if not degraded:
            scorers = [
                (RelationType.IMPORT, lambda: relate_import(a, b)),
                (RelationType.SIMILAR_CHANGES, lambda: relate_similar_changes(a, b, self.config.similarity_threshold)),
                (RelationType.SHARED_FUNCTION, lambda: relate_shared_function(a, b)),
            ] + scorers

        found: list[FileRelationship] = []
        for relation_type, scorer in scorers:
            try:
                result = scorer()
            except Exception as e:
                logger.warning("Scoring %s between %s and %s failed: %s", relation_type.value, a.path, b.path, e)
                continue
            if result is None:
                continue
            strength, evidence = result
            strength = round(min(1.0, strength), 4)
            if strength > EMISSION_THRESHOLDS[relation_type]:
                found.append(FileRelationship(a.path, b.path, relation_type, strength, evidence))
        return found
