from bizhub.db import get_conn
from bizhub.repository import blog_repo, business_repo, directory_repo, event_repo, template_repo
from bizhub.services import consistency_svc
from bizhub.services.consistency_svc import LISTINGS, compare_dashboard, compare_listing


def _populate(make_user):
    u1 = make_user("a@x.com")
    make_user("b@x.com", is_active=0)
    with get_conn() as conn:
        event_repo.insert(conn, {"title": "E1", "event_date": "2999-01-01", "status": "Upcoming"})
        event_repo.insert(conn, {"title": "E2", "event_date": "2999-02-01", "status": "Live Now"})
        event_repo.insert(conn, {"title": "E3", "event_date": "2000-01-01", "status": "Historical", "is_archived": 1})
        blog_repo.insert(conn, {"title": "P1", "category": "News", "published_date": "2025-01-01"})
        blog_repo.insert(conn, {"title": "Thanks!", "category": "Testimonials", "published_date": "2025-02-01"})
        blog_repo.insert(conn, {"title": "Draft", "is_published": 0})
        directory_repo.insert(conn, "members", {"name": "M1"})
        directory_repo.insert(conn, "partners", {"partner_name": "P1"})
        directory_repo.insert(conn, "business", {"business_name": "B1"})
        directory_repo.insert(conn, "business", {"business_name": "B2"})
        business_repo.insert(conn, {"user_id": u1, "business_name": "Acme", "status": "Approved",
                                    "registered_date": "2025-01-01"})
        business_repo.insert(conn, {"user_id": u1, "business_name": "Globex", "status": "Verified Business",
                                    "registered_date": "2024-01-01"})
        business_repo.insert(conn, {"user_id": u1, "business_name": "Pending Co", "status": "Pending"})
        event_repo.insert_pitch_entry(conn, {"business_name": "X", "funding_amount": 1500.5})
        event_repo.insert_pitch_entry(conn, {"business_name": "Y", "funding_amount": 2500})
        template_repo.upsert_template(conn, {"template_id": "t1", "name": "Plan"}, "2025-01-01 00:00:00")
        template_repo.record_download(conn, {"template_id": "t1", "downloaded_at": "2025-01-01 00:00:00"})
        template_repo.record_download(conn, {"template_id": "t1", "downloaded_at": "2025-01-02 00:00:00"})
        conn.commit()


def test_dashboard_stats(client, admin_headers, make_user):
    _populate(make_user)
    r = client.get("/api/admin/dashboard/stats", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {
        "total_events": 3,
        "total_blog_posts": 2,
        "total_directory_entries": 4,
        "total_registered_users": 1,
        "total_members": 1,
        "total_registered_businesses": 3,
        "total_template_downloads": 2,
        "unique_templates_downloaded": 1,
    }


def test_dashboard_requires_admin(client, user_headers):
    assert client.get("/api/admin/dashboard/stats").status_code == 401
    assert client.get("/api/admin/dashboard/stats", headers=user_headers).status_code == 403


def test_public_stats(client, make_user):
    _populate(make_user)
    assert client.get("/api/stats").json() == {
        "activeMembers": 1,
        "businessesListed": 3,
        "fundingCommitted": 4000.5,
        "eventsHosted": 3,
    }


def test_public_stats_empty(client):
    body = client.get("/api/stats").json()
    assert body["fundingCommitted"] == 0
    assert body["activeMembers"] == 0


def test_featured_and_testimonials(client, make_user):
    _populate(make_user)
    body = client.get("/api/featured").json()
    assert body["featuredEvent"]["title"] == "E2"
    assert body["featuredBlog"]["title"] == "Thanks!"
    assert body["featuredBusiness"]["business_name"] == "Globex"

    t = client.get("/api/testimonials").json()["testimonials"]
    assert [p["title"] for p in t] == ["Thanks!"]


def test_featured_empty(client):
    assert client.get("/api/featured").json() == {
        "featuredEvent": None,
        "featuredBlog": None,
        "featuredBusiness": None,
    }


def test_compare_dashboard_reports_mismatch():
    db = {"events": 3, "published_blog_posts": 2, "members": 1, "partners": 1, "directory_businesses": 2,
          "active_users": 1, "businesses": 3}
    stats = {"total_events": 3, "total_blog_posts": 2, "total_directory_entries": 4,
             "total_registered_users": 1, "total_members": 1, "total_registered_businesses": 3}
    assert compare_dashboard(db, stats) == []
    stats["total_directory_entries"] = 3
    assert compare_dashboard(db, stats) == [{"name": "dashboard.total_directory_entries", "db": 4, "api": 3}]


def test_compare_listing_ids():
    listing = LISTINGS[0]
    body = {"members": [{"id": 1}, {"id": 2}], "pagination": {"total": 2}}
    assert compare_listing(listing, 2, body, {1, 2}) == []
    out = compare_listing(listing, 2, body, {1, 3})
    assert out == [{"name": "members.ids", "db": [3], "api": [2]}]
    out = compare_listing(listing, 5, body, None)
    assert out == [{"name": "members.total", "db": 5, "api": 2}]


def test_consistency_over_http(client, admin_id, make_user):
    from bizhub.auth import admin_token

    _populate(make_user)
    res = consistency_svc.run_consistency_check(client, admin_token(admin_id, "admin"))
    assert res["ok"], res["mismatches"]
    assert res["checked"] == len(LISTINGS) + 1
    assert res["skipped"] == []


def test_consistency_without_token_skips_admin(client, make_user):
    _populate(make_user)
    res = consistency_svc.run_consistency_check(client)
    assert res["ok"]
    assert "dashboard (no token)" in res["skipped"]
    assert res["checked"] == sum(1 for l in LISTINGS if not l.admin)


def test_consistency_endpoint(client, admin_headers, make_user):
    _populate(make_user)
    r = client.get("/api/admin/maintenance/consistency", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["ok"] is True
