from vertex.services.execution_log_service import ExecutionLogService


def test_records_are_listed_oldest_first(app):
    log = ExecutionLogService(app)

    log.append("client", "html", "ok", "s-100", at=1)
    log.append("sandbox", "python", "error", "s-100", at=2)

    assert log.records() == [
        {"at": 1, "channel": "client", "language": "html", "status": "ok", "user": "s-100"},
        {"at": 2, "channel": "sandbox", "language": "python", "status": "error", "user": "s-100"},
    ]


def test_log_keeps_only_the_newest_fifty(app):
    log = ExecutionLogService(app)

    for i in range(51):
        log.append("sandbox", "python", "ok", f"user-{i}", at=i)

    records = log.records()
    assert len(records) == 50
    assert records[0]["user"] == "user-1"
    assert records[-1]["user"] == "user-50"
    assert "user-0" not in {r["user"] for r in records}


def test_limit_is_configurable(app):
    log = ExecutionLogService(app, limit=3)

    for i in range(7):
        log.append("client", "html", "ok", "s-100", at=i)

    assert [r["at"] for r in log.records()] == [4, 5, 6]


def test_append_defaults_the_timestamp(app):
    record = ExecutionLogService(app).append("client", "html", "ok", "guest")

    assert record["at"] > 1_600_000_000_000
