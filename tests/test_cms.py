from app.models_catalog import ProductCategory, ServiceCategory
from app.shared.sanitization import clean_text


def test_clean_text_strips_markup():
    assert clean_text("<b>Best</b> Detail & Wax ") == "Best Detail & Wax"
    assert clean_text("x" * 300, max_length=255) == "x" * 255
    assert clean_text(None) is None


def test_create_seo_sanitizes_and_rejects_duplicates(client, owner_headers):
    response = client.post(
        "/api/cms/seo",
        json={"page_path": "/about", "seo_title": "<script>x</script>About us", "canonical_url": "https://example.com/about"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert "<" not in body["seo_title"]
    assert body["seo_title"].endswith("About us")
    assert body["is_auto_generated"] is False

    assert client.post("/api/cms/seo", json={"page_path": "/about"}, headers=owner_headers).status_code == 409


def test_seo_rejects_unsafe_urls(client, owner_headers):
    response = client.post(
        "/api/cms/seo",
        json={"page_path": "/x", "og_image_url": "javascript:alert(1)"},
        headers=owner_headers,
    )
    assert response.status_code == 400


def test_auto_populate_covers_catalog_pages(client, db, owner_headers, make_service):
    category = ServiceCategory(name="Ceramic Coatings", slug="ceramic-coatings", is_active=True)
    db.add(category)
    db.add(ProductCategory(name="Soaps", slug="soaps", is_active=True))
    db.commit()
    make_service(name="Paint Correction", slug="paint-correction", category_id=category.id)
    make_service(name="Loose Service", slug="loose-service")

    client.post("/api/cms/seo", json={"page_path": "/gallery", "seo_title": "Our Work"}, headers=owner_headers)

    response = client.post("/api/cms/seo/auto-populate", headers=owner_headers)
    assert response.status_code == 201
    paths = {entry["page_path"] for entry in response.json()["created"]}
    assert paths == {
        "/",
        "/services",
        "/products",
        "/booking",
        "/services/ceramic-coatings",
        "/services/ceramic-coatings/paint-correction",
        "/products/soaps",
    }
    assert all(entry["is_auto_generated"] for entry in response.json()["created"])

    again = client.post("/api/cms/seo/auto-populate", headers=owner_headers).json()
    assert again == {"created": [], "message": "All pages already have SEO entries"}


def test_manual_edit_clears_auto_flag(client, owner_headers):
    created = client.post("/api/cms/seo/auto-populate", headers=owner_headers).json()["created"]
    home = next(entry for entry in created if entry["page_path"] == "/")

    response = client.patch(f"/api/cms/seo/{home['id']}", json={"focus_keyword": "car detailing"}, headers=owner_headers)
    assert response.json()["is_auto_generated"] is False
    assert response.json()["focus_keyword"] == "car detailing"


def test_public_ads_by_zone_and_device(client, owner_headers):
    creative = client.post(
        "/api/cms/ads/creatives",
        json={"name": "Spring", "image_url": "/img/spring.png", "alt_text": "<i>Spring</i> sale"},
        headers=owner_headers,
    ).json()
    assert creative["alt_text"] == "Spring sale"

    for zone, device, priority in (("hero", "all", 1), ("hero", "mobile", 5), ("sidebar", "desktop", 0)):
        client.post(
            "/api/cms/ads/placements",
            json={"ad_creative_id": creative["id"], "page_path": "/", "zone_id": zone, "device": device, "priority": priority},
            headers=owner_headers,
        )

    desktop = client.get("/api/cms/public/ads", params={"page_path": "/", "device": "desktop"}).json()
    assert set(desktop["zones"]) == {"hero", "sidebar"}
    assert len(desktop["zones"]["hero"]) == 1

    mobile = client.get("/api/cms/public/ads", params={"page_path": "/", "device": "mobile"}).json()
    assert [ad["priority"] for ad in mobile["zones"]["hero"]] == [5, 1]


def test_placement_patch_validates_fields(client, owner_headers):
    creative = client.post("/api/cms/ads/creatives", json={"name": "A", "image_url": "/a.png"}, headers=owner_headers).json()
    placement = client.post(
        "/api/cms/ads/placements",
        json={"ad_creative_id": creative["id"], "page_path": "/", "zone_id": "hero"},
        headers=owner_headers,
    ).json()

    assert client.patch(f"/api/cms/ads/placements/{placement['id']}", json={"nope": 1}, headers=owner_headers).status_code == 400
    assert client.patch(f"/api/cms/ads/placements/{placement['id']}", json={"device": "tv"}, headers=owner_headers).status_code == 400

    ok = client.patch(f"/api/cms/ads/placements/{placement['id']}", json={"priority": 9}, headers=owner_headers)
    assert ok.json()["priority"] == 9


def test_deleting_creative_removes_placements(client, owner_headers):
    creative = client.post("/api/cms/ads/creatives", json={"name": "A", "image_url": "/a.png"}, headers=owner_headers).json()
    client.post(
        "/api/cms/ads/placements",
        json={"ad_creative_id": creative["id"], "page_path": "/", "zone_id": "hero"},
        headers=owner_headers,
    )

    client.delete(f"/api/cms/ads/creatives/{creative['id']}", headers=owner_headers)
    assert client.get("/api/cms/ads/placements", headers=owner_headers).json() == []
