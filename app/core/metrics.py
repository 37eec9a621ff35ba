"""
Prometheus metrics shared by the HTTP middleware and the core services
"""

from prometheus_client import Counter, Histogram, Gauge

REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
ACTIVE_CONNECTIONS = Gauge('http_active_connections', 'Number of active HTTP connections')
TOURNAMENT_JOIN_COUNT = Counter('tournament_joins_total', 'Total tournament joins', ['status'])
REQUEST_DECISION_COUNT = Counter('request_decisions_total', 'Payment/withdrawal decisions', ['kind', 'outcome'])
LEDGER_APPEND_COUNT = Counter('ledger_appends_total', 'Committed ledger entries', ['entry_type'])
