"""Static catalogue of technical domains used to enrich retrieval results."""

import logging
from collections.abc import Iterable

from .models import DomainKnowledge

log = logging.getLogger(__name__)

DEFAULT_DOMAINS: tuple[DomainKnowledge, ...] = (
    DomainKnowledge(
        name="web-development",
        concepts=("http", "rest", "api", "middleware", "router", "cors", "session"),
        patterns=("mvc", "service-layer", "repository", "middleware-chain"),
        technologies=("express", "fastify", "koa", "react", "vue", "angular"),
        best_practices=(
            "Use proper HTTP status codes",
            "Implement proper error handling",
            "Validate input data",
            "Use HTTPS in production",
        ),
        common_issues=(
            "Missing error handling",
            "SQL injection vulnerabilities",
            "CORS configuration problems",
            "Memory leaks in event listeners",
        ),
    ),
    DomainKnowledge(
        name="data-management",
        concepts=("database", "orm", "migration", "schema", "transaction", "indexing"),
        patterns=("active-record", "data-mapper", "unit-of-work", "repository"),
        technologies=("sequelize", "typeorm", "prisma", "mongodb", "postgresql"),
        best_practices=(
            "Use parameterized queries",
            "Implement proper indexing",
            "Handle database connections properly",
            "Use transactions for data consistency",
        ),
        common_issues=(
            "N+1 query problems",
            "Missing database indexes",
            "Connection pool exhaustion",
            "Data integrity violations",
        ),
    ),
    DomainKnowledge(
        name="testing",
        concepts=("unit-test", "integration-test", "mock", "stub", "spy", "coverage"),
        patterns=("arrange-act-assert", "given-when-then", "test-doubles"),
        technologies=("jest", "mocha", "chai", "cypress", "playwright"),
        best_practices=(
            "Write readable test names",
            "Keep tests independent",
            "Use proper test doubles",
            "Aim for good test coverage",
        ),
        common_issues=(
            "Flaky tests",
            "Over-mocking",
            "Poor test organization",
            "Slow test execution",
        ),
    ),
    DomainKnowledge(
        name="security",
        concepts=("authentication", "authorization", "encryption", "hashing", "csrf", "xss"),
        patterns=("oauth", "jwt", "rbac", "defense-in-depth"),
        technologies=("passport", "jsonwebtoken", "bcrypt", "helmet"),
        best_practices=(
            "Never store passwords in plain text",
            "Use HTTPS for sensitive data",
            "Implement proper session management",
            "Validate and sanitize user input",
        ),
        common_issues=(
            "Weak password policies",
            "Missing input validation",
            "Insecure session handling",
            "Exposure of sensitive data",
        ),
    ),
    DomainKnowledge(
        name="performance",
        concepts=("caching", "optimization", "profiling", "bundling", "lazy-loading"),
        patterns=("caching-strategy", "cdn", "code-splitting", "memoization"),
        technologies=("redis", "webpack", "rollup", "worker-threads"),
        best_practices=(
            "Profile before optimizing",
            "Use appropriate caching strategies",
            "Minimize bundle sizes",
            "Implement lazy loading",
        ),
        common_issues=(
            "Memory leaks",
            "Inefficient algorithms",
            "Unnecessary re-renders",
            "Large bundle sizes",
        ),
    ),
)


class DomainKnowledgeBase:
    """Name → DomainKnowledge, fixed at construction."""

    def __init__(self, domains: Iterable[DomainKnowledge] = DEFAULT_DOMAINS) -> None:
        self._domains: dict[str, DomainKnowledge] = {}
        for d in domains:
            if d.name in self._domains:
                raise ValueError(f"Duplicate domain: {d.name}")
            self._domains[d.name] = d
        log.debug("Domain knowledge initialized for %d domains", len(self._domains))

    def get(self, name: str) -> DomainKnowledge | None:
        return self._domains.get(name)

    def domains(self) -> list[DomainKnowledge]:
        return list(self._domains.values())

    def __contains__(self, name: object) -> bool:
        return name in self._domains

    def __len__(self) -> int:
        return len(self._domains)
