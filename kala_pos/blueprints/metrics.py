"""
Prometheus metrics for the POS API.

Request counters and latency are collected by hooks installed from the app
factory; sale and import counters are bumped by the sales and transfer
blueprints. ``GET /metrics`` is unauthenticated: keep it on the shop's
internal network.
"""
import os
import time

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

NAMESPACE = 'pos'

# Gunicorn workers write to PROMETHEUS_MULTIPROC_DIR and are merged on scrape
MULTIPROCESS_MODE = 'PROMETHEUS_MULTIPROC_DIR' in os.environ

if MULTIPROCESS_MODE:
    scrape_registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(scrape_registry)
    metric_registry = None
else:
    scrape_registry = metric_registry = REGISTRY

request_count = Counter(
    'http_requests_total', 'HTTP requests by route and status',
    ['method', 'route', 'status'],
    namespace=NAMESPACE, registry=metric_registry
)

request_latency = Histogram(
    'http_request_duration_seconds', 'HTTP request latency',
    ['method', 'route'],
    namespace=NAMESPACE, registry=metric_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

requests_in_flight = Gauge(
    'http_requests_in_flight', 'Requests being served',
    namespace=NAMESPACE, registry=metric_registry,
    multiprocess_mode='livesum'
)

sales_created_total = Counter(
    'sales_created_total', 'Bills and estimates created',
    ['type'],
    namespace=NAMESPACE, registry=metric_registry
)

sales_updated_total = Counter(
    'sales_updated_total', 'Sales whose items were replaced',
    namespace=NAMESPACE, registry=metric_registry
)

sales_deleted_total = Counter(
    'sales_deleted_total', 'Sales deleted with stock restored',
    namespace=NAMESPACE, registry=metric_registry
)

import_rows_total = Counter(
    'import_rows_total', 'Spreadsheet rows seen by the product import',
    ['outcome'],
    namespace=NAMESPACE, registry=metric_registry
)


def _route_label() -> str:
    # URL rule keeps ids out of the label set (/api/sales/<int:sale_id>)
    rule = request.url_rule
    return rule.rule if rule is not None else 'unmatched'


def setup_metrics_instrumentation(app):
    """Install the request hooks; called once per app from ``create_app``."""

    @app.before_request
    def start_request_timer():
        g.metrics_started = time.perf_counter()
        g.metrics_in_flight = True
        requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        started = g.pop('metrics_started', None)
        if started is None or request.endpoint == 'metrics.scrape':
            return response

        route = _route_label()
        request_latency.labels(method=request.method, route=route).observe(time.perf_counter() - started)
        request_count.labels(method=request.method, route=route, status=response.status_code).inc()
        return response

    @app.teardown_request
    def leave_request(exc=None):
        # Runs for failed requests too, so the gauge never drifts
        if g.pop('metrics_in_flight', False):
            requests_in_flight.dec()


@metrics_bp.route('/metrics')
def scrape():
    """Prometheus text exposition."""
    return Response(generate_latest(scrape_registry), mimetype=CONTENT_TYPE_LATEST)
