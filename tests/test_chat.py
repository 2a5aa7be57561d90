"""
Tests del chat: canal global, mensajes directos, grupos y no leídos.
"""


class TestChannels:

    def test_global_channel_contains_all_members(self, client, auth_as, owner, coach, athlete):
        auth_as(athlete)

        response = client.get("/api/v1/chat/channels")

        assert response.status_code == 200
        channels = response.json()
        assert len(channels) == 1
        assert channels[0]["name"] == "Gym Chat"
        assert channels[0]["channel_type"] == "global"
        assert set(channels[0]["member_ids"]) == {owner.id, coach.id, athlete.id}

    def test_direct_message_is_deduplicated(self, client, auth_as, coach, athlete):
        auth_as(athlete)
        first = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": coach.id})

        auth_as(coach)
        second = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": athlete.id})

        assert first.status_code == 201
        assert first.json()["id"] == second.json()["id"]

    def test_direct_message_with_self(self, client, auth_as, athlete):
        auth_as(athlete)

        response = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": athlete.id})

        assert response.status_code == 400

    def test_group_needs_name_and_members(self, client, auth_as, coach, athlete):
        auth_as(coach)

        unnamed = client.post("/api/v1/chat/channels", json={"channel_type": "group", "member_ids": [athlete.id]})
        alone = client.post(
            "/api/v1/chat/channels", json={"channel_type": "group", "name": "Solo", "member_ids": [coach.id]}
        )
        ok = client.post(
            "/api/v1/chat/channels", json={"channel_type": "group", "name": "Competidores", "member_ids": [athlete.id]}
        )

        assert unnamed.status_code == 422
        assert alone.status_code == 400
        assert ok.status_code == 201
        assert set(ok.json()["member_ids"]) == {coach.id, athlete.id}


class TestMessages:

    def test_unread_counts_follow_messages(self, client, auth_as, coach, athlete):
        auth_as(athlete)
        dm = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": coach.id}).json()
        sent = client.post(f"/api/v1/chat/channels/{dm['id']}/messages", json={"content": "¿Hay clase hoy?"})
        assert sent.status_code == 201

        auth_as(coach)
        assert client.get("/api/v1/chat/notifications/counts").json()["total"] == 1
        messages = client.get(f"/api/v1/chat/channels/{dm['id']}/messages").json()
        assert [m["content"] for m in messages] == ["¿Hay clase hoy?"]

        marked = client.post(f"/api/v1/chat/channels/{dm['id']}/read")
        assert marked.json()["marked_read"] == 1
        assert client.get("/api/v1/chat/notifications/counts").json()["total"] == 0

    def test_sender_gets_no_notification(self, client, auth_as, coach, athlete):
        auth_as(athlete)
        dm = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": coach.id}).json()
        client.post(f"/api/v1/chat/channels/{dm['id']}/messages", json={"content": "Hola"})

        assert client.get("/api/v1/chat/notifications/counts").json()["total"] == 0

    def test_non_member_cannot_read(self, client, auth_as, coach, athlete, athlete2):
        auth_as(athlete)
        dm = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": coach.id}).json()

        auth_as(athlete2)
        response = client.get(f"/api/v1/chat/channels/{dm['id']}/messages")

        assert response.status_code == 403

    def test_empty_message_is_rejected(self, client, auth_as, coach, athlete):
        auth_as(athlete)
        dm = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": coach.id}).json()

        response = client.post(f"/api/v1/chat/channels/{dm['id']}/messages", json={"content": "   "})

        assert response.status_code == 422

    def test_pagination_before_id(self, client, auth_as, coach, athlete):
        auth_as(athlete)
        dm = client.post("/api/v1/chat/channels", json={"channel_type": "dm", "user_id": coach.id}).json()
        ids = [
            client.post(f"/api/v1/chat/channels/{dm['id']}/messages", json={"content": f"m{i}"}).json()["id"]
            for i in range(4)
        ]

        page = client.get(
            f"/api/v1/chat/channels/{dm['id']}/messages", params={"before_id": ids[3], "limit": 2}
        ).json()

        assert [m["content"] for m in page] == ["m1", "m2"]
