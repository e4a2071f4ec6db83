"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================

Exercises the HTTP surface end to end against the in-memory database:
request parsing, status codes, and the ``{success, error}`` error shape.
"""

from __future__ import annotations

import pytest

from conftest import make_admin_token, seed_moment, seed_ritual, seed_user


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ===========================================================================
# Health
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Karma
# ===========================================================================
class TestKarmaRoutes:
    def test_award_and_read(self, client, db_engine):
        seed_user(db_engine, "alice")
        resp = client.post("/api/karma/award", json={"userId": "alice", "action": "comment_created"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["karmaPoints"] == 3
        assert body["karmaBreakdown"]["engagement"] == 3

        resp = client.get("/api/karma/alice")
        assert resp.json()["karmaPoints"] == 3

    def test_invalid_action_is_400(self, client, db_engine):
        seed_user(db_engine, "alice")
        resp = client.post("/api/karma/award", json={"userId": "alice", "action": "bogus"})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid karma action"}

    def test_unknown_user_is_404(self, client):
        resp = client.get("/api/karma/ghost")
        assert resp.status_code == 404
        assert resp.json()["success"] is False


# ===========================================================================
# Rituals
# ===========================================================================
class TestRitualRoutes:
    def test_complete_flow(self, client, db_engine):
        rid = seed_ritual(db_engine)
        resp = client.post("/api/rituals/complete", json={
            "userId": "alice", "ritualId": str(rid), "completedQuietly": True,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["updatedStreak"] == 1
        assert body["state"]["totalCompleted"] == 1
        assert client.get("/api/karma/alice").json()["karmaPoints"] == 5

    def test_duplicate_completion_is_400(self, client, db_engine):
        rid = seed_ritual(db_engine)
        payload = {"userId": "alice", "ritualId": rid, "completedQuietly": False}
        assert client.post("/api/rituals/complete", json=payload).status_code == 200

        resp = client.post("/api/rituals/complete", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Ritual already completed today"

    def test_complete_requires_boolean_flag(self, client, db_engine):
        rid = seed_ritual(db_engine)
        resp = client.post("/api/rituals/complete", json={"userId": "alice", "ritualId": rid})
        assert resp.status_code == 400

    def test_join_leave_join(self, client, db_engine):
        rid = seed_ritual(db_engine)
        payload = {"userId": "alice", "ritualId": str(rid), "ritualScope": "global"}

        assert client.post("/api/rituals/join", json=payload).json()["rippleCount"] == 1
        assert client.post("/api/rituals/leave", json=payload).json()["rippleCount"] == 0
        assert client.post("/api/rituals/join", json=payload).json()["rippleCount"] == 1

        resp = client.get(f"/api/rituals/{rid}/participants")
        assert resp.json()["participants"] == ["alice"]
        assert resp.json()["rippleCount"] == 1

        resp = client.get(f"/api/rituals/{rid}/participants", params={"userId": "alice"})
        assert resp.json()["userHasJoined"] is True

    def test_join_without_user_is_401(self, client, db_engine):
        rid = seed_ritual(db_engine)
        resp = client.post("/api/rituals/join", json={"ritualId": rid})
        assert resp.status_code == 401

    def test_join_missing_ritual_is_404(self, client):
        resp = client.post("/api/rituals/join", json={"userId": "alice", "ritualId": "999"})
        assert resp.status_code == 404

    def test_leave_missing_ritual_succeeds(self, client):
        resp = client.post("/api/rituals/leave", json={"userId": "alice", "ritualId": "999"})
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    def test_create_and_list(self, client):
        resp = client.post("/api/rituals/create", json={
            "userId": "alice",
            "title": "Evening walk",
            "description": "Walk around the block",
            "tags": ["body"],
            "effortLevel": "tiny",
        })
        assert resp.status_code == 201
        ritual_id = resp.json()["ritualId"]

        rituals = client.get("/api/rituals/my-rituals", params={"userId": "alice"}).json()["rituals"]
        assert [r["id"] for r in rituals] == [ritual_id]
        assert rituals[0]["scope"] == "personalized"

    def test_create_from_moment(self, client, db_engine):
        mid = seed_moment(db_engine, created_by="alice", text="Cooked for a friend")
        resp = client.post("/api/rituals/create-from-moment", json={
            "userId": "alice", "momentId": str(mid),
        })
        assert resp.status_code == 201
        assert resp.json()["ritual"]["title"] == "Cooked for a friend"

    def test_visibility(self, client, db_engine):
        rid = seed_ritual(db_engine, scope="personalized", created_by="alice")

        resp = client.post(f"/api/rituals/{rid}/visibility", json={"userId": "alice", "public": True})
        assert resp.json() == {"success": True, "scope": "public", "message": "Ritual is now public"}

        resp = client.post(f"/api/rituals/{rid}/visibility", json={"userId": "bob", "scope": "personalized"})
        assert resp.status_code == 403

    def test_stats_achievements_level(self, client, db_engine):
        seed_user(db_engine, "alice", karma_points=120)

        stats = client.get("/api/rituals/stats", params={"userId": "alice"}).json()["stats"]
        assert stats["totalCompleted"] == 0

        resp = client.get("/api/rituals/achievements", params={"userId": "alice"})
        assert resp.json()["unlockedIds"] == ["karma_50", "karma_100"]
        resp = client.post("/api/rituals/achievements", json={"userId": "alice"})
        assert resp.json()["unlockedIds"] == ["karma_50", "karma_100"]

        level = client.get("/api/rituals/level", params={"userId": "alice"}).json()
        assert level["level"] == 2
        assert level["karmaForNextLevel"] == 200

    def test_complete_malformed_ritual_id_is_404(self, client):
        resp = client.post("/api/rituals/complete", json={
            "userId": "alice", "ritualId": "abc", "completedQuietly": True,
        })
        assert resp.status_code == 404
        assert resp.json()["error"] == "Ritual not found"

    def test_leaderboard(self, client, db_engine):
        seed_user(db_engine, "alice", karma_points=40)
        seed_user(db_engine, "bob", karma_points=900)
        seed_user(db_engine, "carol", karma_points=10)

        resp = client.get("/api/rituals/leaderboard", params={"limit": 1, "userId": "carol"})
        assert resp.status_code == 200
        body = resp.json()
        assert [e["userId"] for e in body["entries"]] == ["bob"]
        assert body["entries"][0]["level"] == 10
        assert body["userRank"] == 3

    def test_leaderboard_rejects_bad_limit(self, client):
        assert client.get("/api/rituals/leaderboard", params={"limit": 0}).status_code == 422

    def test_stats_without_user_is_400(self, client):
        resp = client.get("/api/rituals/stats")
        assert resp.status_code == 400
        assert resp.json()["error"] == "User ID is required"


# ===========================================================================
# Impact moments, comments, story reactions
# ===========================================================================
class TestMomentRoutes:
    def test_create_moment(self, client):
        resp = client.post("/api/impact-moments", json={
            "userId": "alice",
            "text": "Picked up litter at the beach",
            "tags": ["nature", "community"],
            "effortLevel": "medium",
            "moodCheckIn": {"before": 3, "after": 5},
        })
        assert resp.status_code == 201
        assert resp.json()["success"] is True
        assert client.get("/api/karma/alice").json()["karmaPoints"] == 15

    def test_create_moment_without_user_is_401(self, client):
        resp = client.post("/api/impact-moments", json={
            "text": "Hi", "tags": ["mind"], "effortLevel": "tiny",
        })
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized. User ID required."

    def test_patch_by_non_owner_is_403(self, client, db_engine):
        mid = seed_moment(db_engine, created_by="alice")
        resp = client.patch(f"/api/impact-moments/{mid}", json={
            "userId": "bob", "text": "Edited", "tags": ["mind"], "effortLevel": "tiny",
        })
        assert resp.status_code == 403

    def test_put_by_owner(self, client, db_engine):
        mid = seed_moment(db_engine, created_by="alice")
        resp = client.put(f"/api/impact-moments/{mid}", json={
            "userId": "alice", "text": "Edited", "tags": ["mind"], "effortLevel": "tiny",
        })
        assert resp.status_code == 200

    @pytest.mark.parametrize("user, status", [("bob", 403), ("alice", 200)])
    def test_delete(self, client, db_engine, user, status):
        mid = seed_moment(db_engine, created_by="alice")
        resp = client.request("DELETE", f"/api/impact-moments/{mid}", json={"userId": user})
        assert resp.status_code == status

    def test_comment(self, client, db_engine):
        seed_user(db_engine, "alice")
        mid = seed_moment(db_engine, created_by="alice")
        resp = client.post("/api/comments", json={"userId": "bob", "momentId": mid, "text": "Great"})
        assert resp.status_code == 201
        assert "commentId" in resp.json()
        assert client.get("/api/karma/alice").json()["karmaPoints"] == 2

    def test_story_reaction_toggle(self, client):
        payload = {"storyId": "Tool Library", "userId": "alice", "reactionType": "inspired"}
        assert client.post("/api/story-reactions", json=payload).json()["reactionCount"] == 1
        assert client.post("/api/story-reactions", json=payload).json()["reactionCount"] == 0

        resp = client.get("/api/story-reactions/Tool Library")
        assert resp.json()["reactions"]["reactionCount"] == 0


# ===========================================================================
# Admin
# ===========================================================================
class TestAdminRoutes:
    def test_reconcile_requires_token(self, client):
        assert client.post("/api/admin/reconcile-ripples").status_code == 401

    def test_reconcile_rejects_non_admin(self, client):
        token = make_admin_token(is_admin=False)
        resp = client.post("/api/admin/reconcile-ripples", headers=_auth(token))
        assert resp.status_code == 403

    def test_reconcile_fixes_drift(self, client, db_engine):
        seed_ritual(db_engine, ripple_count=4)
        resp = client.post("/api/admin/reconcile-ripples", headers=_auth(make_admin_token()))
        assert resp.status_code == 200
        assert resp.json()["corrected"] == 1

    def test_recalculate_karma(self, client, db_engine):
        seed_user(db_engine, "alice", karma_points=77)
        resp = client.post("/api/admin/karma/alice/recalculate", headers=_auth(make_admin_token()))
        assert resp.status_code == 200
        assert resp.json()["karmaPoints"] == 0
