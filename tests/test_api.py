"""End-to-end tests through the HTTP API.

Every request runs through the real routers, dependencies and error
handlers against an in-memory database.
"""
import uuid

import pytest


async def _login(client, email):
    resp = await client.post("/api/auth/login", json={"email": email})
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


async def _onboard(client, email, **profile):
    user_id = await _login(client, email)
    body = {"name": email.split("@")[0].title(), "age": 27, "gender": "woman", "lookingFor": "serious"}
    body.update(profile)
    resp = await client.put("/api/users/update", json=body, headers={"user-id": user_id})
    assert resp.status_code == 200, resp.text
    return user_id


def _h(user_id):
    return {"user-id": user_id}


class TestHealth:

    async def test_liveness(self, client):
        resp = await client.get("/health")
        assert resp.json() == {"status": "healthy"}


class TestIdentity:

    async def test_login_creates_then_reuses(self, client):
        first = await _login(client, "emma@example.com")
        second = await _login(client, "EMMA@example.com")
        assert first == second

    async def test_missing_header_is_401(self, client):
        resp = await client.get("/api/users/me")
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthenticated"

    async def test_malformed_header_is_401(self, client):
        resp = await client.get("/api/users/me", headers=_h("u1"))
        assert resp.status_code == 401

    async def test_unknown_user_is_404(self, client):
        resp = await client.get("/api/users/me", headers=_h(str(uuid.uuid4())))
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    async def test_me_before_and_after_profile(self, client):
        user_id = await _login(client, "emma@example.com")
        resp = await client.get("/api/users/me", headers=_h(user_id))
        assert resp.json()["profile"] is None

        resp = await client.put(
            "/api/users/update",
            json={"name": "Emma", "age": 26, "gender": "woman", "looking_for": "serious"},
            headers=_h(user_id),
        )
        body = resp.json()
        assert body["user"]["id"] == user_id
        assert body["profile"]["lookingFor"] == "serious"
        assert body["profile"]["isVerified"] is False

    async def test_underage_profile_is_422(self, client):
        user_id = await _login(client, "teen@example.com")
        resp = await client.put(
            "/api/users/update",
            json={"name": "Teen", "age": 16, "gender": "man", "lookingFor": "casual"},
            headers=_h(user_id),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    async def test_discovery_zero_limit_is_422(self, client):
        me = await _onboard(client, "emma@example.com")
        await _onboard(client, "alex@example.com")
        resp = await client.get("/api/discovery?limit=0", headers=_h(me))
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"


class TestMatchingFlow:
    """Two users like each other, chat, and read."""

    async def test_end_to_end(self, client):
        u1 = await _onboard(client, "emma@example.com")
        u2 = await _onboard(client, "alex@example.com", gender="man")

        deck = (await client.get("/api/discovery", headers=_h(u1))).json()["profiles"]
        assert [p["id"] for p in deck] == [u2]
        assert {"name", "age", "distance", "bio", "interests", "photos", "isVerified"} <= set(deck[0])

        resp = await client.post("/api/swipes", json={"swipedId": u2, "isLike": True}, headers=_h(u1))
        assert resp.status_code == 201
        assert resp.json()["isMatch"] is False

        resp = await client.post("/api/swipes", json={"swipedId": u1, "isLike": True}, headers=_h(u2))
        body = resp.json()
        assert body["isMatch"] is True
        match = body["match"]
        assert sorted([u1, u2]) == [match["user1Id"], match["user2Id"]]

        for user in (u1, u2):
            matches = (await client.get("/api/matches", headers=_h(user))).json()["matches"]
            assert [m["id"] for m in matches] == [match["id"]]

        resp = await client.post(
            "/api/messages",
            json={"content": "hi", "type": "text", "recipientId": u2},
            headers=_h(u1),
        )
        assert resp.status_code == 201
        assert resp.json()["matchId"] == match["id"]

        messages = (
            await client.get(f"/api/matches/{match['id']}/messages", headers=_h(u2))
        ).json()["messages"]
        assert len(messages) == 1
        assert messages[0]["senderId"] == u1
        assert messages[0]["isRead"] is False

        read = await client.post(f"/api/matches/{match['id']}/read", headers=_h(u2))
        assert read.json() == {"updated": 1}
        again = await client.post(f"/api/matches/{match['id']}/read", headers=_h(u2))
        assert again.json() == {"updated": 0}

        messages = (
            await client.get(f"/api/matches/{match['id']}/messages", headers=_h(u1))
        ).json()["messages"]
        assert messages[0]["isRead"] is True

        matches = (await client.get("/api/matches", headers=_h(u1))).json()["matches"]
        assert matches[0]["lastMessageAt"] is not None

    async def test_duplicate_swipe_returns_200(self, client):
        u1 = await _onboard(client, "emma@example.com")
        u2 = await _onboard(client, "alex@example.com")
        await client.post("/api/swipes", json={"swipedId": u2, "isLike": False}, headers=_h(u1))
        resp = await client.post("/api/swipes", json={"swipedId": u2, "isLike": True}, headers=_h(u1))
        assert resp.status_code == 200
        assert resp.json()["created"] is False
        assert resp.json()["swipe"]["isLike"] is False

    async def test_self_swipe_is_422(self, client):
        u1 = await _onboard(client, "emma@example.com")
        resp = await client.post("/api/swipes", json={"swipedId": u1, "isLike": True}, headers=_h(u1))
        assert resp.status_code == 422

    async def test_message_to_non_match_is_404(self, client):
        u1 = await _onboard(client, "emma@example.com")
        u2 = await _onboard(client, "alex@example.com")
        resp = await client.post(
            "/api/messages", json={"content": "hi", "recipientId": u2}, headers=_h(u1)
        )
        assert resp.status_code == 404

    async def test_outsider_cannot_read_match(self, client):
        u1 = await _onboard(client, "emma@example.com")
        u2 = await _onboard(client, "alex@example.com")
        u3 = await _onboard(client, "sarah@example.com")
        await client.post("/api/swipes", json={"swipedId": u2, "isLike": True}, headers=_h(u1))
        body = (
            await client.post("/api/swipes", json={"swipedId": u1, "isLike": True}, headers=_h(u2))
        ).json()

        resp = await client.get(f"/api/matches/{body['match']['id']}/messages", headers=_h(u3))
        assert resp.status_code == 403
        resp = await client.post(
            "/api/messages",
            json={"content": "hi", "matchId": body["match"]["id"]},
            headers=_h(u3),
        )
        assert resp.status_code == 403

    async def test_message_needs_exactly_one_target(self, client):
        u1 = await _onboard(client, "emma@example.com")
        resp = await client.post("/api/messages", json={"content": "hi"}, headers=_h(u1))
        assert resp.status_code == 422


class TestVipLikes:

    async def _purchase(self, client, user_id, reference, plan="monthly"):
        resp = await client.post(
            "/api/subscriptions",
            json={"planType": plan, "paymentReference": reference},
            headers=_h(user_id),
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def _webhook(self, client, reference, status):
        resp = await client.post(
            "/api/subscriptions/webhook",
            json={"paymentReference": reference, "status": status},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    async def test_likes_gated_until_vip(self, client):
        me = await _onboard(client, "emma@example.com")
        fan = await _onboard(client, "alex@example.com", name="Alex")
        await client.post("/api/swipes", json={"swipedId": me, "isLike": True}, headers=_h(fan))

        resp = await client.get("/api/likes", headers=_h(me))
        assert resp.status_code == 200
        assert resp.json() == {"likes": [], "count": 1, "isVIP": False}

        subscription = await self._purchase(client, me, "pi_abc")
        assert subscription["amount"] == 1500
        assert subscription["status"] == "pending"

        # Recorded but unpaid: still gated.
        assert (await client.get("/api/likes", headers=_h(me))).json()["isVIP"] is False

        confirmed = await self._webhook(client, "pi_abc", "active")
        assert confirmed["status"] == "active"

        status = (await client.get("/api/subscriptions/status", headers=_h(me))).json()
        assert status["isVIP"] is True
        assert status["subscription"]["id"] == subscription["id"]

        body = (await client.get("/api/likes", headers=_h(me))).json()
        assert body["isVIP"] is True
        assert [p["name"] for p in body["likes"]] == ["Alex"]

        resp = await client.post(f"/api/subscriptions/{subscription['id']}/cancel", headers=_h(me))
        assert resp.json()["status"] == "cancelled"
        assert (await client.get("/api/likes", headers=_h(me))).json()["isVIP"] is False

    async def test_purchase_without_payment_reference_is_422(self, client):
        me = await _onboard(client, "emma@example.com")
        resp = await client.post(
            "/api/subscriptions", json={"planType": "monthly"}, headers=_h(me)
        )
        assert resp.status_code == 422
        status = (await client.get("/api/subscriptions/status", headers=_h(me))).json()
        assert status == {"isVIP": False, "subscription": None}

    async def test_purchase_alone_grants_nothing(self, client):
        me = await _onboard(client, "emma@example.com")
        await self._purchase(client, me, "pi_unpaid", plan="yearly")
        status = (await client.get("/api/subscriptions/status", headers=_h(me))).json()
        assert status == {"isVIP": False, "subscription": None}

    async def test_webhook_applies_status(self, client):
        me = await _onboard(client, "emma@example.com")
        await self._purchase(client, me, "pi_xyz", plan="yearly")
        await self._webhook(client, "pi_xyz", "active")
        assert (await client.get("/api/subscriptions/status", headers=_h(me))).json()["isVIP"]

        await self._webhook(client, "pi_xyz", "expired")
        status = (await client.get("/api/subscriptions/status", headers=_h(me))).json()
        assert status == {"isVIP": False, "subscription": None}

    async def test_someone_elses_payment_reference_is_409(self, client):
        me = await _onboard(client, "emma@example.com")
        other = await _onboard(client, "alex@example.com")
        await self._purchase(client, me, "pi_mine")

        resp = await client.post(
            "/api/subscriptions",
            json={"planType": "monthly", "paymentReference": "pi_mine"},
            headers=_h(other),
        )
        assert resp.status_code == 409
        assert me not in resp.text

    async def test_cannot_cancel_someone_elses(self, client):
        me = await _onboard(client, "emma@example.com")
        other = await _onboard(client, "alex@example.com")
        sub = await self._purchase(client, me, "pi_cancel")
        resp = await client.post(f"/api/subscriptions/{sub['id']}/cancel", headers=_h(other))
        assert resp.status_code == 403
