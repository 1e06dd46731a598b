def test_health_endpoints(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    assert client.get("/api/health").json() == {"status": "ok"}


def test_readiness_reports_schema_and_legacy_rows(client, db_session, factory, school):
    factory.session(school.spanish, school.b1, 1, school.r1)
    db_session.commit()

    ready = client.get("/api/health/ready")

    assert ready.status_code == 200
    database = ready.json()["database"]
    assert database["ok"] is True
    assert database["schema_ok"] is True
    assert database["missing_tables"] == []
    assert database["legacy_sessions_without_homeroom"] == 1
