"""Static production-readiness scoring for generated web projects.

The validator never touches the filesystem and never raises on bad input: a
file that cannot be parsed simply becomes a failed check. Scores are computed
as a severity-weighted pass ratio per category and combined into a single
weighted mean.
"""
from __future__ import annotations

import json
import posixpath
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


MINIMUM_SCORE = 90
COMPONENT_MINIMUM_SCORE = 85

SEVERITY_WEIGHTS: Dict[str, int] = {"error": 3, "warning": 2, "info": 1}

CATEGORY_WEIGHTS: Dict[str, int] = {
    "structure": 20,
    "code": 25,
    "performance": 15,
    "accessibility": 15,
    "design": 10,
    "content": 15,
}

EXTENDED_CATEGORY_WEIGHTS: Dict[str, int] = {
    "lint": 10,
    "imports": 10,
    "dead_code": 5,
    "type_safety": 10,
}

CATEGORY_PASS_THRESHOLDS: Dict[str, int] = {
    "structure": 80,
    "code": 70,
    "performance": 60,
    "accessibility": 70,
    "design": 50,
    "content": 60,
    "lint": 70,
    "imports": 80,
    "dead_code": 50,
    "type_safety": 60,
}

_RECOMMENDATIONS: Tuple[Tuple[str, int, str], ...] = (
    ("structure", 90, "Complete the project skeleton: add the missing configuration files and entry points."),
    ("code", 80, "Harden the React code: add an error boundary, loading states and explicit hook imports."),
    ("performance", 70, "Lazy-load routes and images and memoize expensive renders."),
    ("accessibility", 80, "Use semantic landmarks, ARIA labels and alt text on every image."),
    ("design", 60, "Add responsive breakpoints, consistent spacing and subtle transitions."),
    ("content", 70, "Replace placeholder copy with realistic, specific content and contact details."),
    ("lint", 80, "Remove debugging statements and legacy var declarations."),
    ("imports", 90, "Fix relative imports that do not resolve and declare every imported package."),
    ("dead_code", 70, "Delete unused components and commented-out code."),
    ("type_safety", 80, "Enable strict mode and replace explicit any types."),
)

_REQUIRED_FILES: Tuple[Tuple[str, Tuple[str, ...], str], ...] = (
    ("package.json", ("package.json",), "error"),
    ("index.html", ("index.html",), "error"),
    ("src/main", ("src/main.tsx", "src/main.jsx", "src/main.ts", "src/main.js"), "error"),
    ("src/App", ("src/App.tsx", "src/App.jsx"), "error"),
    ("vite config", ("vite.config.ts", "vite.config.js", "vite.config.mjs"), "error"),
    (
        "tailwind config",
        ("tailwind.config.ts", "tailwind.config.js", "tailwind.config.cjs", "tailwind.config.mjs"),
        "error",
    ),
    ("tsconfig.json", ("tsconfig.json",), "error"),
    (".env.example", (".env.example",), "info"),
    ("README.md", ("README.md",), "info"),
)

ESSENTIAL_DEPENDENCIES: Tuple[str, ...] = ("react", "react-dom", "typescript", "tailwindcss")
MAX_DEPENDENCIES = 20

_SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")
_JSX_SUFFIXES = (".tsx", ".jsx")
_RESOLVE_SUFFIXES = ("", ".ts", ".tsx", ".js", ".jsx", ".css", ".json", "/index.ts", "/index.tsx", "/index.js", "/index.jsx")

_HOOK_USAGE = re.compile(r"\buse(?:State|Effect|Memo|Callback|Ref|Context|Reducer|LayoutEffect)\s*\(")
_REACT_IMPORT = re.compile(r"""from\s+['"]react['"]|require\(\s*['"]react['"]\s*\)""")
_PLACEHOLDER = re.compile(r"lorem ipsum|\[placeholder\]|your (?:text|content|title) here|sample text", re.IGNORECASE)
_IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE | re.DOTALL)
_INPUT_TAG = re.compile(r"<(?:input|textarea|select)\b", re.IGNORECASE)
_IMPORT_FROM = re.compile(r"""^\s*import\s+(?:[^'";]*?\s+from\s+)?['"]([^'"]+)['"]""", re.MULTILINE)
_EXPORT_COMPONENT = re.compile(r"export\s+default\b|export\s+(?:const|function)\s+[A-Z]\w*")
_RETURNS_JSX = re.compile(r"return\s*\(?\s*<|=>\s*\(?\s*<")
_TYPED_PROPS = re.compile(
    r"\b\w*Props\b|React\.FC\b|:\s*FC<|function\s+[A-Z]\w*\s*\(\s*\)|=\s*\(\s*\)\s*(?::\s*[\w.<>]+\s*)?=>"
)
_ACCESSIBLE_MARKUP = re.compile(r"aria-|role=|alt=|<(?:nav|header|footer|main|section|article|button|label)\b")
_RESPONSIVE = re.compile(r"\b(?:sm|md|lg|xl):")


@dataclass(frozen=True)
class Check:
    name: str
    passed: bool
    severity: str
    message: str
    fix: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "passed": self.passed,
            "severity": self.severity,
            "message": self.message,
        }
        if self.fix:
            data["fix"] = self.fix
        return data


@dataclass(frozen=True)
class CategoryResult:
    name: str
    score: int
    passed: bool
    weight: int
    checks: Tuple[Check, ...] = ()

    @property
    def failed_checks(self) -> List[Check]:
        return [check for check in self.checks if not check.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "passed": self.passed,
            "weight": self.weight,
            "checks": [check.to_dict() for check in self.checks],
        }


@dataclass(frozen=True)
class Issue:
    category: str
    type: str
    message: str
    fix: str

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "type": self.type, "message": self.message, "fix": self.fix}


@dataclass(frozen=True)
class ValidationReport:
    overall_score: int
    passed: bool
    minimum_score: int
    categories: Mapping[str, CategoryResult]
    issues: Tuple[Issue, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "passed": self.passed,
            "minimum_score": self.minimum_score,
            "categories": {name: result.to_dict() for name, result in self.categories.items()},
            "issues": [issue.to_dict() for issue in self.issues],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class ValidationContext:
    """Optional per-session knobs for :meth:`QualityValidator.validate`."""

    extended_categories: Tuple[str, ...] = ()
    minimum_score: Optional[int] = None


def score_checks(checks: Sequence[Check]) -> int:
    """Severity-weighted pass ratio in percent; an empty list scores 100."""

    if not checks:
        return 100
    total = sum(SEVERITY_WEIGHTS.get(check.severity, 1) for check in checks)
    earned = sum(SEVERITY_WEIGHTS.get(check.severity, 1) for check in checks if check.passed)
    return round(earned * 100 / total)


def weighted_mean(categories: Mapping[str, CategoryResult]) -> int:
    total_weight = sum(result.weight for result in categories.values())
    if total_weight <= 0:
        return 100
    total = sum(result.score * result.weight for result in categories.values())
    return round(total / total_weight)


def _check(name: str, passed: bool, severity: str, ok: str, failed: str, fix: str | None = None) -> Check:
    return Check(name=name, passed=bool(passed), severity=severity, message=ok if passed else failed, fix=None if passed else fix)


class _Project:
    """Pre-sliced, sorted views over an :class:`ArtifactSet`."""

    def __init__(self, artifacts: Mapping[str, str]) -> None:
        self.files: Dict[str, str] = {path: artifacts[path] for path in sorted(artifacts)}
        self.sources: Dict[str, str] = {
            path: content
            for path, content in self.files.items()
            if path.startswith("src/") and path.endswith(_SOURCE_SUFFIXES) and not path.endswith(".d.ts")
        }
        self.jsx: Dict[str, str] = {path: c for path, c in self.sources.items() if path.endswith(_JSX_SUFFIXES)}
        self.markup = "\n".join(list(self.jsx.values()) + [self.files.get("index.html", "")])
        self.all_source = "\n".join(self.sources.values())
        self.manifest, self.manifest_error = self._load_manifest()

    def _load_manifest(self) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        raw = self.files.get("package.json")
        if raw is None:
            return None, "package.json is missing"
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            return None, f"package.json is not valid JSON ({exc.msg} at line {exc.lineno})"
        if not isinstance(data, dict):
            return None, "package.json must contain a JSON object"
        return data, None

    def dependencies(self) -> Dict[str, str]:
        if not self.manifest:
            return {}
        merged: Dict[str, str] = {}
        for key in ("dependencies", "devDependencies", "peerDependencies"):
            section = self.manifest.get(key)
            if isinstance(section, dict):
                merged.update({str(name): str(version) for name, version in section.items()})
        return merged

    def runtime_dependencies(self) -> Dict[str, str]:
        section = (self.manifest or {}).get("dependencies")
        return dict(section) if isinstance(section, dict) else {}

    def scripts(self) -> Dict[str, Any]:
        section = (self.manifest or {}).get("scripts")
        return section if isinstance(section, dict) else {}


# ---------------------------------------------------------------------------
# Category evaluators
# ---------------------------------------------------------------------------


def _structure_checks(project: _Project) -> List[Check]:
    checks: List[Check] = []
    for label, candidates, severity in _REQUIRED_FILES:
        present = any(candidate in project.files for candidate in candidates)
        checks.append(
            _check(
                f"file:{label}",
                present,
                severity,
                f"{label} present",
                f"Missing required file {label}",
                f"Create {candidates[0]}",
            )
        )

    has_components = any(path.startswith("src/components/") for path in project.files)
    checks.append(
        _check(
            "components_directory",
            has_components,
            "warning",
            "src/components/ contains component files",
            "No src/components/ directory",
            "Split the UI into components under src/components/",
        )
    )

    checks.append(
        _check(
            "package_json_valid",
            project.manifest is not None,
            "error",
            "package.json parses",
            project.manifest_error or "package.json is invalid",
            "Regenerate package.json as valid JSON",
        )
    )

    declared = project.dependencies()
    for name in ESSENTIAL_DEPENDENCIES:
        checks.append(
            _check(
                f"dependency:{name}",
                name in declared,
                "error",
                f"{name} declared",
                f"Essential dependency {name} is not declared",
                f"Add {name} to package.json",
            )
        )

    scripts = project.scripts()
    checks.append(
        _check("script:build", "build" in scripts, "error", "build script defined", "No build script in package.json", 'Add "build": "vite build"')
    )
    checks.append(
        _check("script:dev", "dev" in scripts, "warning", "dev script defined", "No dev script in package.json", 'Add "dev": "vite"')
    )
    return checks


def _code_checks(project: _Project) -> List[Check]:
    ts_files = [path for path in project.sources if path.endswith((".ts", ".tsx"))]
    component_files = [path for path in project.jsx if path.startswith("src/components/")]
    missing_hook_imports = [
        path
        for path, content in project.jsx.items()
        if _HOOK_USAGE.search(content) and not _REACT_IMPORT.search(content)
    ]
    return [
        _check("typescript", bool(ts_files), "warning", f"{len(ts_files)} TypeScript files", "No TypeScript sources found", "Use .ts/.tsx files"),
        _check(
            "react_components",
            bool(component_files),
            "error",
            f"{len(component_files)} React components",
            "No React components under src/components/",
            "Generate the required components",
        ),
        _check(
            "react_imports",
            not missing_hook_imports,
            "error",
            "Hooks are imported from react",
            "Hooks used without importing react: " + ", ".join(missing_hook_imports),
            "Import hooks from 'react'",
        ),
        _check(
            "error_boundary",
            "ErrorBoundary" in project.all_source or "componentDidCatch" in project.all_source,
            "warning",
            "Error boundary present",
            "No error boundary",
            "Wrap the app in an ErrorBoundary",
        ),
        _check(
            "loading_states",
            re.search(r"isLoading|loading|Suspense|Spinner", project.all_source) is not None,
            "warning",
            "Loading states handled",
            "No loading states",
            "Show a spinner or skeleton while loading",
        ),
    ]


def _performance_checks(project: _Project) -> List[Check]:
    images = _IMG_TAG.findall(project.markup)
    eager_images = [tag for tag in images if 'loading="lazy"' not in tag and "loading='lazy'" not in tag]
    if project.manifest is None:
        dependency_check = Check("dependency_count", False, "warning", project.manifest_error or "package.json unreadable", "Fix package.json")
    else:
        count = len(project.runtime_dependencies())
        dependency_check = _check(
            "dependency_count",
            count <= MAX_DEPENDENCIES,
            "warning",
            f"{count} runtime dependencies",
            f"{count} runtime dependencies (more than {MAX_DEPENDENCIES})",
            "Remove unused dependencies",
        )
    return [
        _check(
            "code_splitting",
            re.search(r"\blazy\s*\(|import\s*\(", project.all_source) is not None,
            "info",
            "Routes or components are lazy-loaded",
            "No code splitting",
            "Use React.lazy for heavy routes",
        ),
        _check(
            "lazy_images",
            not eager_images,
            "info",
            "Images load lazily",
            f"{len(eager_images)} images without loading=\"lazy\"",
            'Add loading="lazy" to images',
        ),
        _check(
            "memoization",
            re.search(r"\buseMemo\b|\buseCallback\b|\bmemo\s*\(", project.all_source) is not None,
            "info",
            "Memoization used",
            "No memoization",
            "Memoize expensive computations",
        ),
        dependency_check,
    ]


def _accessibility_checks(project: _Project) -> List[Check]:
    images = _IMG_TAG.findall(project.markup)
    missing_alt = [tag for tag in images if "alt=" not in tag]
    has_inputs = _INPUT_TAG.search(project.markup) is not None
    labelled = re.search(r"<label\b|aria-label", project.markup) is not None
    return [
        _check(
            "semantic_html",
            re.search(r"<(?:header|nav|main|footer|section|article)\b", project.markup) is not None,
            "warning",
            "Semantic landmarks used",
            "No semantic HTML landmarks",
            "Use header/nav/main/footer elements",
        ),
        _check(
            "aria_attributes",
            re.search(r"aria-[a-z]+=|role=", project.markup) is not None,
            "warning",
            "ARIA attributes present",
            "No ARIA attributes",
            "Label interactive elements with aria-*",
        ),
        _check(
            "image_alt",
            not missing_alt,
            "error",
            "Every image has alt text",
            f"{len(missing_alt)} images without alt text",
            "Add descriptive alt attributes",
        ),
        _check(
            "form_labels",
            not has_inputs or labelled,
            "warning",
            "Form controls are labelled",
            "Form controls without labels",
            "Add <label> or aria-label to inputs",
        ),
        _check(
            "keyboard_navigation",
            re.search(r"onKeyDown|onKeyUp|tabIndex|focus:|focus-visible:", project.markup) is not None,
            "info",
            "Keyboard focus handled",
            "No keyboard navigation affordances",
            "Add focus styles and key handlers",
        ),
    ]


def _design_checks(project: _Project) -> List[Check]:
    markup = project.markup
    return [
        _check("responsive", _RESPONSIVE.search(markup) is not None, "warning", "Responsive breakpoints used", "No responsive classes", "Add sm:/md:/lg: variants"),
        _check("dark_mode", "dark:" in markup, "info", "Dark mode variants present", "No dark mode support", "Add dark: variants"),
        _check(
            "spacing",
            re.search(r"\b(?:p|px|py|m|mx|my|gap|space-[xy])-\d", markup) is not None,
            "info",
            "Consistent spacing utilities",
            "No spacing utilities",
            "Use Tailwind spacing scale",
        ),
        _check(
            "animations",
            re.search(r"\btransition\b|animate-|framer-motion|motion\.", project.all_source) is not None,
            "info",
            "Transitions or animations present",
            "No transitions",
            "Add hover transitions",
        ),
    ]


def _content_checks(project: _Project) -> List[Check]:
    placeholders = sorted(path for path, content in project.jsx.items() if _PLACEHOLDER.search(content))
    items = len(re.findall(r"\{\s*[^{}]*?\b(?:name|title)\s*:", project.all_source))
    index_html = project.files.get("index.html", "")
    return [
        _check(
            "no_placeholder_text",
            not placeholders,
            "warning",
            "No placeholder copy",
            "Placeholder text in " + ", ".join(placeholders),
            "Replace placeholder text with real copy",
        ),
        _check("rich_content", items >= 5, "info", f"{items} content items", f"Only {items} content items", "Add at least five realistic items"),
        _check(
            "professional_tone",
            re.search(r"\b(?:services|solutions|professional|quality|experience|expert)", project.markup, re.IGNORECASE) is not None,
            "info",
            "Professional wording present",
            "Copy lacks professional wording",
            "Describe services and experience",
        ),
        _check(
            "contact_info",
            re.search(r"mailto:|tel:|[\w.+-]+@[\w-]+\.\w+|contact", project.markup, re.IGNORECASE) is not None,
            "info",
            "Contact information present",
            "No contact information",
            "Add an email address or phone number",
        ),
        _check(
            "seo_metadata",
            "<title>" in index_html and 'name="description"' in index_html,
            "warning",
            "Title and meta description set",
            "index.html lacks a title or meta description",
            "Add <title> and <meta name=\"description\">",
        ),
    ]


def _lint_checks(project: _Project) -> List[Check]:
    def _offenders(pattern: str) -> List[str]:
        regex = re.compile(pattern, re.MULTILINE)
        return [path for path, content in project.sources.items() if regex.search(content)]

    console = _offenders(r"\bconsole\.log\(")
    debugger = _offenders(r"^\s*debugger\s*;?\s*$")
    var_decl = _offenders(r"^\s*var\s+\w+")
    disabled = _offenders(r"eslint-disable")
    return [
        _check("no_console_log", not console, "warning", "No console.log calls", "console.log in " + ", ".join(console), "Remove console.log"),
        _check("no_debugger", not debugger, "error", "No debugger statements", "debugger in " + ", ".join(debugger), "Remove debugger statements"),
        _check("no_var", not var_decl, "warning", "No var declarations", "var used in " + ", ".join(var_decl), "Use const/let"),
        _check("no_eslint_disable", not disabled, "info", "No disabled lint rules", "eslint-disable in " + ", ".join(disabled), "Fix the underlying lint issue"),
    ]


def _resolves(project: _Project, importer: str, target: str) -> bool:
    base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), target))
    return any(base + suffix in project.files for suffix in _RESOLVE_SUFFIXES)


def _package_name(specifier: str) -> str:
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def _import_checks(project: _Project) -> List[Check]:
    unresolved: List[str] = []
    undeclared: List[str] = []
    declared = project.dependencies()
    for path, content in project.sources.items():
        for specifier in _IMPORT_FROM.findall(content):
            if specifier.startswith("."):
                if not _resolves(project, path, specifier):
                    unresolved.append(f"{path} -> {specifier}")
            elif not specifier.startswith(("/", "@/", "~")):
                name = _package_name(specifier)
                if name not in declared and name not in undeclared:
                    undeclared.append(name)
    return [
        _check(
            "relative_imports_resolve",
            not unresolved,
            "error",
            "Every relative import resolves",
            "Unresolved imports: " + ", ".join(unresolved),
            "Create the missing module or fix the import path",
        ),
        _check(
            "packages_declared",
            project.manifest is not None and not undeclared,
            "warning",
            "Every imported package is declared",
            "Undeclared packages: " + ", ".join(undeclared) if undeclared else (project.manifest_error or "package.json unreadable"),
            "Add the packages to package.json",
        ),
    ]


def _dead_code_checks(project: _Project) -> List[Check]:
    unused: List[str] = []
    for path in project.jsx:
        if not path.startswith("src/components/"):
            continue
        stem = posixpath.splitext(posixpath.basename(path))[0]
        pattern = re.compile(r"""from\s+['"][^'"]*\b""" + re.escape(stem) + r"""['"]|import\s*\(\s*['"][^'"]*\b""" + re.escape(stem))
        if not any(pattern.search(content) for other, content in project.sources.items() if other != path):
            unused.append(path)
    commented = [
        path
        for path, content in project.sources.items()
        if re.search(r"^\s*//\s*(?:const|let|import|export|return|function)\b", content, re.MULTILINE)
    ]
    return [
        _check("unused_components", not unused, "warning", "Every component is imported", "Unused components: " + ", ".join(unused), "Remove or use the component"),
        _check("commented_out_code", not commented, "info", "No commented-out code", "Commented-out code in " + ", ".join(commented), "Delete dead code"),
    ]


def _type_safety_checks(project: _Project) -> List[Check]:
    ts_sources = {path: c for path, c in project.sources.items() if path.endswith((".ts", ".tsx"))}
    explicit_any = [path for path, c in ts_sources.items() if re.search(r":\s*any\b|\bas\s+any\b|<any>", c)]
    ignored = [path for path, c in ts_sources.items() if "@ts-ignore" in c or "@ts-nocheck" in c]
    tsconfig = project.files.get("tsconfig.json", "")
    return [
        _check("strict_mode", re.search(r'"strict"\s*:\s*true', tsconfig) is not None, "warning", "Strict mode enabled", "tsconfig.json does not enable strict mode", 'Set "strict": true'),
        _check("no_explicit_any", not explicit_any, "warning", "No explicit any", "Explicit any in " + ", ".join(explicit_any), "Replace any with concrete types"),
        _check("no_ts_ignore", not ignored, "warning", "No suppressed type errors", "@ts-ignore in " + ", ".join(ignored), "Fix the suppressed errors"),
    ]


CategoryEvaluator = Callable[[_Project], List[Check]]

CATEGORY_EVALUATORS: Dict[str, CategoryEvaluator] = {
    "structure": _structure_checks,
    "code": _code_checks,
    "performance": _performance_checks,
    "accessibility": _accessibility_checks,
    "design": _design_checks,
    "content": _content_checks,
}

EXTENDED_EVALUATORS: Dict[str, CategoryEvaluator] = {
    "lint": _lint_checks,
    "imports": _import_checks,
    "dead_code": _dead_code_checks,
    "type_safety": _type_safety_checks,
}


def _safe_checks(evaluator: CategoryEvaluator, project: _Project, name: str) -> List[Check]:
    try:
        return evaluator(project)
    except Exception as exc:  # evaluators must never abort a validation run
        return [Check(f"{name}_evaluator", False, "error", f"Could not evaluate {name}: {exc}", "Manual review required")]


class QualityValidator:
    """Score an :class:`ArtifactSet` against weighted production-readiness categories."""

    def __init__(
        self,
        minimum_score: int = MINIMUM_SCORE,
        extended_categories: Iterable[str] = (),
        component_minimum_score: int = COMPONENT_MINIMUM_SCORE,
    ) -> None:
        unknown = [name for name in extended_categories if name not in EXTENDED_EVALUATORS]
        if unknown:
            raise ValueError(f"Unknown extended categories: {', '.join(unknown)}")
        self.minimum_score = minimum_score
        self.extended_categories = tuple(extended_categories)
        self.component_minimum_score = component_minimum_score

    @classmethod
    def from_settings(cls, settings) -> "QualityValidator":
        return cls(
            minimum_score=settings.minimum_score,
            extended_categories=settings.extended_categories,
            component_minimum_score=settings.component_minimum_score,
        )

    def validate(self, artifacts: Mapping[str, str], context: ValidationContext | None = None) -> ValidationReport:
        project = _Project(artifacts)
        minimum = self.minimum_score
        extended = list(self.extended_categories)
        if context is not None:
            if context.minimum_score is not None:
                minimum = context.minimum_score
            extended.extend(name for name in context.extended_categories if name not in extended)

        evaluators: List[Tuple[str, CategoryEvaluator, int]] = [
            (name, evaluator, CATEGORY_WEIGHTS[name]) for name, evaluator in CATEGORY_EVALUATORS.items()
        ]
        for name in extended:
            if name in EXTENDED_EVALUATORS:
                evaluators.append((name, EXTENDED_EVALUATORS[name], EXTENDED_CATEGORY_WEIGHTS[name]))

        categories: Dict[str, CategoryResult] = {}
        for name, evaluator, weight in evaluators:
            checks = _safe_checks(evaluator, project, name)
            score = score_checks(checks)
            categories[name] = CategoryResult(
                name=name,
                score=score,
                passed=score >= CATEGORY_PASS_THRESHOLDS.get(name, 70),
                weight=weight,
                checks=tuple(checks),
            )

        overall = weighted_mean(categories)
        return ValidationReport(
            overall_score=overall,
            passed=overall >= minimum,
            minimum_score=minimum,
            categories=categories,
            issues=tuple(_collect_issues(categories)),
            recommendations=tuple(_recommendations(categories)),
        )

    def validate_component(self, path: str, content: str) -> CategoryResult:
        """Run the per-component check subset used during generation."""

        checks = tuple(_component_checks(path, content or ""))
        result = CategoryResult(name="component", score=score_checks(checks), passed=False, weight=0, checks=checks)
        return replace(result, passed=self.component_passes(result))

    def component_passes(self, result: CategoryResult) -> bool:
        """At or above the component minimum with no failed error-severity check."""

        hard_failure = any(not check.passed and check.severity == "error" for check in result.checks)
        return result.score >= self.component_minimum_score and not hard_failure


def _balanced(content: str) -> bool:
    pairs = {")": "(", "]": "[", "}": "{"}
    stack: List[str] = []
    for char in content:
        if char in "([{":
            stack.append(char)
        elif char in pairs:
            if not stack or stack.pop() != pairs[char]:
                return False
    return not stack


def _component_checks(path: str, content: str) -> List[Check]:
    stripped = content.strip()
    typed = not path.endswith(".tsx") or _TYPED_PROPS.search(content) is not None
    return [
        _check("not_empty", len(stripped) >= 80, "error", "Component has a body", "Component is empty or truncated", "Regenerate the full component"),
        _check("no_markdown", "```" not in content, "error", "No markdown fences", "Markdown fences left in code", "Return raw code only"),
        _check("exports_component", _EXPORT_COMPONENT.search(content) is not None, "error", "Exports a component", "No exported component", "Add export default"),
        _check("returns_jsx", _RETURNS_JSX.search(content) is not None, "error", "Returns JSX", "Component never returns JSX", "Return JSX markup"),
        _check("balanced_brackets", _balanced(content), "error", "Brackets balanced", "Unbalanced brackets", "Close every bracket"),
        _check("typed_props", typed, "warning", "Props are typed", "Props are not typed", "Declare a Props interface"),
        _check("no_placeholder_text", _PLACEHOLDER.search(content) is None, "warning", "No placeholder copy", "Placeholder copy present", "Write realistic copy"),
        _check("responsive_classes", _RESPONSIVE.search(content) is not None, "warning", "Responsive classes used", "No responsive classes", "Add sm:/md:/lg: variants"),
        _check("accessible_markup", _ACCESSIBLE_MARKUP.search(content) is not None, "warning", "Accessible markup", "No semantic or ARIA markup", "Use semantic elements and aria labels"),
        _check("no_console", "console.log(" not in content, "info", "No console.log", "console.log left in component", "Remove console.log"),
    ]


def _collect_issues(categories: Mapping[str, CategoryResult]) -> List[Issue]:
    issues: List[Issue] = []
    for name, result in categories.items():
        for check in result.checks:
            if check.passed or check.severity == "info":
                continue
            issues.append(Issue(category=name, type=check.severity, message=check.message, fix=check.fix or "Manual review required"))
    return issues


def _recommendations(categories: Mapping[str, CategoryResult]) -> List[str]:
    recommendations = [
        message for name, threshold, message in _RECOMMENDATIONS if name in categories and categories[name].score < threshold
    ]
    if not recommendations:
        recommendations.append("Excellent! The project meets every production-readiness threshold.")
    return recommendations


__all__ = [
    "CATEGORY_WEIGHTS",
    "EXTENDED_CATEGORY_WEIGHTS",
    "SEVERITY_WEIGHTS",
    "MINIMUM_SCORE",
    "COMPONENT_MINIMUM_SCORE",
    "Check",
    "CategoryResult",
    "Issue",
    "ValidationReport",
    "ValidationContext",
    "QualityValidator",
    "score_checks",
    "weighted_mean",
]
