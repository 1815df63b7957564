def test_root(client):
    assert client.get("/").json() == {"message": "Smart Detail API is running"}


def test_health(client):
    response = client.get("/health")
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Process-Time-Ms"].isdigit()


def test_redis_health_without_redis(client):
    body = client.get("/health/redis").json()
    assert body["status"] == "disabled"
    assert body["redis"]["connected"] is False
