from prometheus_client import Counter, Histogram


# === Domain Metrics ===

match_requests_total = Counter(
    "match_requests_total", "Interviewer matching attempts by outcome",
    ["outcome"]
)

match_duration_seconds = Histogram(
    "match_duration_seconds", "Time spent scoring and ranking interviewers"
)

booking_attempts_total = Counter(
    "booking_attempts_total", "Booking confirmations and reservations by outcome",
    ["operation", "outcome"]
)

api_exception_counter = Counter(
    "api_exception_count", "Total API exceptions by type",
    ["type"]
)
