from gymhub.models.notice import Notice


class TestNotices:

    def test_new_notice_replaces_active_one(self, client, auth_as, db, coach, athlete):
        auth_as(coach)
        first = client.post("/api/v1/notices", json={"title": "Horario de verano", "content": "Abrimos a las 7"})
        second = client.post("/api/v1/notices", json={"title": "Torneo", "content": "Inscripciones abiertas"})

        assert first.status_code == 201
        assert second.status_code == 201
        active = db.query(Notice).filter(Notice.is_active.is_(True)).all()
        assert [n.id for n in active] == [second.json()["id"]]

        auth_as(athlete)
        response = client.get("/api/v1/notices/active")
        assert response.json()["title"] == "Torneo"

    def test_no_active_notice_returns_null(self, client, auth_as, athlete):
        auth_as(athlete)

        response = client.get("/api/v1/notices/active")

        assert response.status_code == 200
        assert response.json() is None

    def test_reactivating_deactivates_others(self, client, auth_as, db, owner):
        auth_as(owner)
        first = client.post("/api/v1/notices", json={"title": "Uno", "content": "A"}).json()
        client.post("/api/v1/notices", json={"title": "Dos", "content": "B"})

        response = client.put(f"/api/v1/notices/{first['id']}", json={"is_active": True})

        assert response.status_code == 200
        active = db.query(Notice).filter(Notice.is_active.is_(True)).all()
        assert [n.id for n in active] == [first["id"]]

    def test_email_to_members(self, client, auth_as, owner, coach, athlete, mock_email_send):
        auth_as(owner)

        response = client.post(
            "/api/v1/notices", json={"title": "Cerrado el lunes", "content": "Festivo", "send_email": True}
        )

        assert response.status_code == 201
        assert mock_email_send.call_count == 3
        assert {c.args[1] for c in mock_email_send.call_args_list} == {"CrossFit Norte: Cerrado el lunes"}

    def test_email_respects_gym_preferences(self, client, auth_as, db, gym, owner, athlete, mock_email_send):
        gym.announcement_emails_enabled = False
        db.commit()
        auth_as(owner)

        client.post("/api/v1/notices", json={"title": "Aviso", "content": "Texto", "send_email": True})

        mock_email_send.assert_not_called()

    def test_athlete_cannot_post(self, client, auth_as, athlete):
        auth_as(athlete)

        response = client.post("/api/v1/notices", json={"title": "Hola", "content": "Mundo"})

        assert response.status_code == 403

    def test_delete_notice(self, client, auth_as, owner):
        auth_as(owner)
        created = client.post("/api/v1/notices", json={"title": "Temporal", "content": "X"}).json()

        assert client.delete(f"/api/v1/notices/{created['id']}").status_code == 204
        assert client.get("/api/v1/notices").json() == []
