import pytest

from buildsmith.sandbox.error_parser import classify, parse_build_errors, parse_error_line, summarize_failure


def test_syntax_error_with_line_number() -> None:
    error = parse_error_line("SyntaxError: Unexpected token at src/App.tsx line 12")

    assert error.file == "src/App.tsx"
    assert error.line == 12
    assert error.kind == "syntax"


def test_typescript_compiler_format() -> None:
    output = "src/components/Hero.tsx(14,7): error TS2304: Cannot find name 'Buton'.\n"

    errors = parse_build_errors(output)

    assert len(errors) == 1
    assert errors[0].file == "src/components/Hero.tsx"
    assert (errors[0].line, errors[0].column) == (14, 7)
    assert "Cannot find name" in errors[0].message


def test_esbuild_format_with_file_on_following_line() -> None:
    output = "\n".join(
        [
            "\x1b[31mX [ERROR] Could not resolve \"framer-motion\"\x1b[0m",
            "",
            "    src/components/Gallery.tsx:3:23:",
            "      3 | import { motion } from 'framer-motion';",
        ]
    )

    errors = parse_build_errors(output)

    assert errors[0].file == "src/components/Gallery.tsx"
    assert (errors[0].line, errors[0].column) == (3, 23)
    assert errors[0].kind == "dependency"


def test_node_modules_paths_are_not_preferred() -> None:
    error = parse_error_line("error in node_modules/react/index.js from src/main.tsx:4:1 module not found")

    assert error.file == "src/main.tsx"
    assert error.kind == "dependency"


def test_summary_lines_and_duplicates_are_skipped() -> None:
    output = "\n".join(
        [
            "src/App.tsx:5:1 - error TS1005: ';' expected.",
            "src/App.tsx:5:1 - error TS1005: ';' expected.",
            "Found 0 errors in 0 files.",
        ]
    )

    errors = parse_build_errors(output)

    assert len(errors) == 1


def test_unlocated_error_defaults_to_unknown_file() -> None:
    errors = parse_build_errors("ReferenceError: window is not defined")

    assert errors[0].file == "unknown"
    assert errors[0].kind == "runtime"


@pytest.mark.parametrize(
    "text, kind",
    [
        ("Unterminated string literal", "syntax"),
        ("Cannot find module './Foo'", "dependency"),
        ("TypeError: x is not a function", "runtime"),
        ("vite build exited with code 1", "build"),
    ],
)
def test_classify(text: str, kind: str) -> None:
    assert classify(text) == kind


def test_summarize_failure_uses_last_non_empty_line() -> None:
    error = summarize_failure("building...\nexit status 2\n\n")

    assert error.message == "exit status 2"
    assert error.file == "unknown"
    assert error.kind == "build"


def test_file_names_containing_error_are_not_errors() -> None:
    output = "\n".join(
        [
            "vite v5.4.0 building for production...",
            "transforming src/components/ErrorFallback.tsx",
            "    at ErrorFallback (src/components/ErrorFallback.tsx:3:1)",
            "rendering src/pages/error-page.tsx",
            "src/App.tsx:3:8 - error TS2307: Cannot find module './components/Hero'.",
        ]
    )

    errors = parse_build_errors(output)

    assert [error.file for error in errors] == ["src/App.tsx"]
    assert errors[0].kind == "dependency"


@pytest.mark.parametrize(
    "line",
    ["SyntaxError: Unexpected token", "X [ERROR] Expected \";\"", "error during build:", "Error: Cannot find module 'x'"],
)
def test_error_markers_still_match(line: str) -> None:
    assert len(parse_build_errors(line)) == 1
