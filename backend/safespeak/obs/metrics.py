"""Central registry for Prometheus metrics used across the service."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"safespeak_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"safespeak_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

ANALYSES_TOTAL = Counter(
	"safespeak_content_analyses_total",
	"Content analyses by outcome",
	["outcome"],
)

ANALYSIS_LATENCY_SECONDS = Histogram(
	"safespeak_content_analysis_latency_seconds",
	"Content analyzer latency in seconds",
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

CLASSIFIER_FAILURES_TOTAL = Counter(
	"safespeak_classifier_failures_total",
	"Statistical classifier failures by classifier and reason",
	["classifier", "reason"],
)

CLASSIFIER_READY = Gauge(
	"safespeak_classifier_ready",
	"Whether a statistical classifier finished loading (1) or not (0)",
	["classifier"],
)

MODERATION_RESULTS_TOTAL = Counter(
	"safespeak_moderation_results_total",
	"Reject/allow moderation results by source and outcome",
	["source", "outcome"],
)

MODERATION_FALLBACKS_TOTAL = Counter(
	"safespeak_moderation_fallbacks_total",
	"Fallbacks from the moderation service to the local keyword scan",
	["reason"],
)

POLICY_DECISIONS_TOTAL = Counter(
	"safespeak_policy_decisions_total",
	"Content policy decisions by policy, kind and result",
	["policy", "kind", "result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def observe_analysis(outcome: str, elapsed_seconds: float) -> None:
	ANALYSES_TOTAL.labels(outcome=outcome).inc()
	ANALYSIS_LATENCY_SECONDS.observe(elapsed_seconds)


def inc_classifier_failure(classifier: str, reason: str) -> None:
	CLASSIFIER_FAILURES_TOTAL.labels(classifier=classifier, reason=reason).inc()


def mark_classifier_ready(classifier: str, ready: bool) -> None:
	CLASSIFIER_READY.labels(classifier=classifier).set(1 if ready else 0)


def inc_moderation_result(source: str, flagged: bool) -> None:
	MODERATION_RESULTS_TOTAL.labels(source=source, outcome="flagged" if flagged else "clean").inc()


def inc_moderation_fallback(reason: str) -> None:
	MODERATION_FALLBACKS_TOTAL.labels(reason=reason).inc()


def inc_policy_decision(policy: str, kind: str, allowed: bool) -> None:
	POLICY_DECISIONS_TOTAL.labels(policy=policy, kind=kind, result="allowed" if allowed else "rejected").inc()
