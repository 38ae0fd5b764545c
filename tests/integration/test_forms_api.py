"""Integration tests for the public form submission endpoint."""


def test_submit_form(client, tenant_headers, test_tenant, fake_messaging, make_rule):
    """Test that a submission emits FORM_SUBMITTED."""
    make_rule(
        test_tenant.id,
        "FORM_SUBMITTED",
        {"formId": "contact-us"},
        actions=[{"type": "SEND_EMAIL", "config": {"to": "inbox@example.com"}}],
    )

    response = client.post(
        "/api/v1/forms/contact-us/submissions",
        json={"data": {"email": "visitor@example.com"}},
        headers=tenant_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["form_id"] == "contact-us"
    assert data["received"] is True
    assert data["matched_rules"] == 1
    assert response.headers["X-RateLimit-Limit"] == "10"
    assert response.headers["X-RateLimit-Remaining"] == "9"
    assert fake_messaging.emails[0]["to"] == "inbox@example.com"


def test_submit_form_rate_limited(client, tenant_headers):
    """Test that the eleventh submission within the hour is rejected."""
    headers = {**tenant_headers, "X-Forwarded-For": "198.51.100.23"}
    for _ in range(10):
        response = client.post(
            "/api/v1/forms/newsletter/submissions", json={"data": {}}, headers=headers
        )
        assert response.status_code == 201

    response = client.post(
        "/api/v1/forms/newsletter/submissions", json={"data": {}}, headers=headers
    )

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert int(response.headers["Retry-After"]) > 0

    # Other clients are unaffected
    other = client.post(
        "/api/v1/forms/newsletter/submissions",
        json={"data": {}},
        headers={**tenant_headers, "X-Forwarded-For": "198.51.100.99"},
    )
    assert other.status_code == 201


def test_submit_form_requires_tenant(client):
    """Test that a submission without X-Tenant-ID is rejected."""
    response = client.post("/api/v1/forms/contact-us/submissions", json={"data": {}})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "TENANT_REQUIRED"
