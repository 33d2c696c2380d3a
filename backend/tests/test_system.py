# Overview: Pytest coverage for health, sync and the Flask CLI commands.

from posx.models import Client, SessionToken


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["timestamp"].endswith("Z")

    def test_unknown_route_uses_error_body(self, client):
        resp = client.get("/nowhere")

        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not found", "code": "not_found"}

    def test_wrong_method(self, client):
        resp = client.delete("/health")
        assert resp.status_code == 405
        assert resp.get_json()["code"] == "method_not_allowed"

    def test_cors_for_known_origin(self, client):
        allowed = client.get("/health", headers={"Origin": "http://localhost:5173"})
        denied = client.get("/health", headers={"Origin": "http://evil.example"})

        assert allowed.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "Access-Control-Allow-Origin" not in denied.headers


class TestSync:

    def test_sync_counts_client_rows(self, client, headers, other_shop, sell, make_product):
        cola = make_product("Cola", quantity=5)
        make_product("Theirs", client_id=other_shop.id)
        sell((cola, 1))

        resp = client.post("/pos/sync", headers=headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["message"] == "Database synchronized"
        assert body["counts"] == {"products": 1, "sales": 1, "expenses": 0}

    def test_sync_requires_auth(self, client):
        assert client.post("/pos/sync").status_code == 401


class TestCli:

    def test_create_and_list_clients(self, app, db_session):
        runner = app.test_cli_runner()

        created = runner.invoke(args=[
            "clients", "create",
            "--name", "Corner Shop",
            "--phone", "5550100",
            "--password", "Password123!",
        ])
        listed = runner.invoke(args=["clients", "list"])

        assert created.exit_code == 0, created.output
        assert "PASS Created client: Corner Shop" in created.output
        assert db_session.query(Client).filter_by(phone_number="5550100").count() == 1
        assert "Corner Shop" in listed.output

    def test_create_client_rejects_short_password(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "clients", "create", "--name", "Tiny", "--phone", "5550101", "--password", "short",
        ])

        assert result.exit_code != 0
        assert "Password validation failed" in result.output

    def test_list_without_clients(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["clients", "list"])
        assert "No clients found." in result.output

    def test_cleanup_sessions(self, app, db_session, shop):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])

        assert result.exit_code == 0
        assert "Deleted 0 stale sessions." in result.output
        assert db_session.query(SessionToken).count() == 0
