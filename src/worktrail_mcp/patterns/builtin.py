"""Built-in workflow pattern rules."""

from __future__ import annotations

from .models import KeywordPatternRule

PACKAGE_COMMANDS = [
    "npm install",
    "npm i",
    "npm ci",
    "npm start",
    "npm run dev",
    "npm run start",
    "yarn install",
    "yarn start",
    "yarn dev",
    "pnpm install",
    "pnpm dev",
    "pip install",
    "poetry install",
    "uv sync",
    "bundle install",
    "composer install",
]

QUALITY_COMMANDS = [
    "npm test",
    "npm run test",
    "npm run lint",
    "npm run format",
    "yarn test",
    "yarn lint",
    "pnpm test",
    "pytest",
    "tox",
    "jest",
    "vitest",
    "eslint",
    "prettier",
    "ruff",
    "flake8",
    "pylint",
    "mypy",
    "black",
    "go test",
    "cargo test",
    "cargo fmt",
    "cargo clippy",
    "gofmt",
]

BUILD_COMMANDS = [
    "npm run build",
    "yarn build",
    "pnpm build",
    "make",
    "cargo build",
    "go build",
    "mvn package",
    "gradle build",
    "./gradlew build",
    "tsc",
    "python -m build",
]

DEPLOY_COMMANDS = [
    "docker",
    "docker-compose",
    "podman",
    "kubectl",
    "helm",
    "terraform apply",
    "serverless deploy",
    "vercel",
    "npm run deploy",
    "fly deploy",
]

BUILTIN_RULES: tuple[KeywordPatternRule, ...] = (
    KeywordPatternRule(
        name="subdirectory_package_workflow",
        description="Package install or dev-server start scoped to a subdirectory",
        all_of=[PACKAGE_COMMANDS],
        subdirectory=True,
    ),
    KeywordPatternRule(
        name="version_control_workflow",
        description="Several version-control commands run back to back",
        all_of=[["git"]],
        min_matches=2,
    ),
    KeywordPatternRule(
        name="quality_checks",
        description="Test or lint step present",
        all_of=[QUALITY_COMMANDS],
    ),
    KeywordPatternRule(
        name="build_and_deploy",
        description="Build step combined with a containerization or deploy step",
        all_of=[BUILD_COMMANDS, DEPLOY_COMMANDS],
    ),
)


__all__ = [
    "BUILD_COMMANDS",
    "BUILTIN_RULES",
    "DEPLOY_COMMANDS",
    "PACKAGE_COMMANDS",
    "QUALITY_COMMANDS",
]
