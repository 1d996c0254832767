"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# User metrics
users_created_total = Counter(
    "users_created_total",
    "Total users created on first lookup",
)

# Ledger metrics
credits_debited_total = Counter(
    "credits_debited_total",
    "Total credits debited for service use",
)

credit_debits_rejected_total = Counter(
    "credit_debits_rejected_total",
    "Total debit attempts rejected for insufficient credits",
)

credits_granted_total = Counter(
    "credits_granted_total",
    "Total credits granted",
    labelnames=["source"],  # system, payment, webhook_payment
)

# Payment metrics
payments_verified_total = Counter(
    "payments_verified_total",
    "Total payment verification attempts",
    labelnames=["result"],  # credited, duplicate, invalid_signature
)

webhook_events_total = Counter(
    "webhook_events_total",
    "Total gateway webhook deliveries",
    labelnames=["event_type", "result"],  # result: credited, duplicate, ignored, failed, rejected
)
