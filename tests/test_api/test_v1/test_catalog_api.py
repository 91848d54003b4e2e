"""Tests for Catalog Endpoints"""


class TestCategories:
    """Test GET /api/v1/categories"""

    def test_list_categories(self, client, server_id):
        response = client.get("/api/v1/categories", params={"serverId": server_id})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [c["category_name"] for c in body["data"]] == ["Action", "Drama"]

    def test_missing_server_id(self, client):
        response = client.get("/api/v1/categories")

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unknown_server(self, client):
        response = client.get("/api/v1/categories", params={"serverId": "doesnotexist"})
        assert response.status_code == 404

    def test_remote_failure_is_logged(self, client, server_id, fake_http):
        fake_http.action_errors["get_vod_categories"] = 500

        response = client.get("/api/v1/categories", params={"serverId": server_id})

        assert response.status_code == 502
        logs = client.get("/api/v1/logs", params={"serverId": server_id}).json()["data"]
        assert logs[0]["action"] == "fetch_categories"
        assert logs[0]["status"] == "error"


class TestMovies:
    """Test GET /api/v1/movies"""

    def test_list_movies(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert [m["name"] for m in body["data"]] == ["Alpha", "Beta", "Gamma"]
        assert body["data"][0]["container_extension"] == "mkv"

    def test_search(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "query": "alpha"})

        assert [m["name"] for m in response.json()["data"]] == ["Alpha"]

    def test_category_filter(self, client, server_id, fake_http):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "categoryId": "1"})

        assert [m["name"] for m in response.json()["data"]] == ["Alpha", "Gamma"]
        assert fake_http.calls[-1].endswith("&category_id=1")

    def test_date_filter_and_sort(self, client, server_id):
        response = client.get("/api/v1/movies", params={
            "serverId": server_id,
            "fromDate": "2023-02-01",
            "sortBy": "added",
            "sortOrder": "desc",
        })

        assert [m["name"] for m in response.json()["data"]] == ["Beta", "Gamma"]

    def test_sort_by_added(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "sortBy": "added"})

        assert [m["name"] for m in response.json()["data"]] == ["Alpha", "Gamma", "Beta"]

    def test_invalid_sort_field(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "sortBy": "year"})
        assert response.status_code == 400

    def test_invalid_from_date(self, client, server_id, fake_http):
        calls_before = len(fake_http.calls)

        response = client.get("/api/v1/movies", params={"serverId": server_id, "fromDate": "someday"})

        assert response.status_code == 400
        assert len(fake_http.calls) == calls_before

    def test_numeric_from_date_rejected(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "fromDate": "2023"})

        assert response.status_code == 400
        assert "fromDate" in response.json()["error"]

    def test_movie_details(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "movieId": 101})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["stream_id"] == 101
        assert data["plot"] == "A squad of explorers crosses the frozen north."

    def test_unknown_movie(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "movieId": 999})

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_invalid_movie_id(self, client, server_id):
        response = client.get("/api/v1/movies", params={"serverId": server_id, "movieId": 0})
        assert response.status_code == 400

    def test_remote_unavailable(self, client, server_id, fake_http, connection_error):
        fake_http.action_errors["get_vod_streams"] = connection_error

        response = client.get("/api/v1/movies", params={"serverId": server_id})

        assert response.status_code == 502
        assert "secret" not in response.json()["error"]

    def test_malformed_response(self, client, server_id, fake_http):
        fake_http.invalid_json_actions.add("get_vod_streams")

        response = client.get("/api/v1/movies", params={"serverId": server_id})

        assert response.status_code == 502
        assert response.json()["error_code"] == "malformed_response"

    def test_success_is_logged(self, client, server_id):
        client.get("/api/v1/movies", params={"serverId": server_id})

        logs = client.get("/api/v1/logs", params={"serverId": server_id}).json()["data"]
        assert logs[0]["action"] == "fetch_movies"
        assert logs[0]["status"] == "success"
        assert "3 movies" in logs[0]["message"]
