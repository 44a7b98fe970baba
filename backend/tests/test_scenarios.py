"""End-to-end group scenarios across the HTTP surface.

- Family group: create, list, add a member, counts follow
- Study group: stage two candidates, commit, both inserted in order
- Shared reminders: list stays ordered by time of day
"""
from group_reminders.models.group import GroupRole
from tests.conftest import FlakyStore, create_test_profile, make_account, make_session


class TestFamilyFitness:

    def test_create_then_add_member(self, client):
        owner = create_test_profile(client, email="owner@x.com", name="Owner")
        friend = create_test_profile(client, email="a@x.com", name="A")
        params = {"account_id": owner["id"]}

        client.post("/api/group-creation/open", params=params)
        resp = client.post("/api/group-creation/details", params=params, json={"name": "Family Fitness"})
        assert resp.status_code == 201
        group_id = resp.json()["group_id"]
        client.post("/api/group-creation/skip", params=params)

        [listed] = client.get("/api/groups/", params=params).json()
        assert listed["name"] == "Family Fitness"
        assert listed["description"] is None
        assert listed["member_count"] == 1

        resp = client.post(f"/api/groups/{group_id}/members", params=params, json={
            "id": friend["id"], "email": "a@x.com", "full_name": "A",
        })
        assert resp.status_code == 201
        assert resp.json()["selected_group"]["member_count"] == 2


class TestStudyGroup:

    def test_commit_two_staged_members(self, session_factory):
        store = FlakyStore(session_factory)
        creator = make_account(store, "creator@uni.edu", "Creator")
        first = make_account(store, "first@uni.edu", "First")
        second = make_account(store, "second@uni.edu", "Second")
        session = make_session(store, creator)

        session.creation.open()
        group_id = session.creation.submit_details("Study Group")
        session.creation.stage(first)
        session.creation.stage(second)
        store.inserts.clear()
        session.creation.commit_members()

        assert [(t, v["user_id"], v["role"]) for t, v in store.inserts] == [
            ("memberships", first.id, GroupRole.member),
            ("memberships", second.id, GroupRole.member),
        ]
        assert session.selected_group.id == group_id
        assert session.selected_group.member_count == 3

    def test_commit_over_http(self, client):
        creator = create_test_profile(client, email="creator@uni.edu", name="Creator")
        first = create_test_profile(client, email="first@uni.edu", name="First")
        second = create_test_profile(client, email="second@uni.edu", name="Second")
        params = {"account_id": creator["id"]}

        client.post("/api/group-creation/open", params=params)
        client.post("/api/group-creation/details", params=params, json={"name": "Study Group"})
        for profile in (first, second):
            client.post("/api/group-creation/pending", params=params, json={
                "id": profile["id"], "email": profile["email"], "full_name": profile["full_name"],
            })
        resp = client.post("/api/group-creation/commit", params=params)

        assert resp.status_code == 200
        state = resp.json()
        assert state["creation"]["step"] == "idle"
        assert state["creation"]["pending_members"] == []
        assert state["selected_group"]["name"] == "Study Group"
        assert state["selected_group"]["member_count"] == 3


class TestSharedReminders:

    def test_reminders_ordered_by_time(self, client):
        owner = create_test_profile(client, email="owner@x.com", name="Owner")
        params = {"account_id": owner["id"]}
        client.post("/api/group-creation/open", params=params)
        group_id = client.post("/api/group-creation/details", params=params,
                               json={"name": "Mornings"}).json()["group_id"]
        client.post("/api/group-creation/skip", params=params)

        for title, time in (("Lunch walk", "12:30"), ("Sunrise", "06:00")):
            client.post(f"/api/groups/{group_id}/reminders", params=params,
                        json={"title": title, "time": time, "repeat": "daily"})
        resp = client.post(f"/api/groups/{group_id}/reminders", params=params,
                           json={"title": "Stand-up", "time": "09:00", "repeat": "daily"})

        assert resp.status_code == 201
        reminders = resp.json()["reminders"]
        assert [r["time"] for r in reminders] == ["06:00", "09:00", "12:30"]
        assert reminders[1]["title"] == "Stand-up"
        assert reminders[1]["repeat"] == "daily"
