from classgrid.core.exceptions import ExternalServiceError
from conftest import make_recommendation, make_section


def create_draft(client, groups=None, **extra):
    payload = {
        "level": 1,
        "semester": "First Semester",
        "groups": groups
        or {
            "A": {
                "student_count": 20,
                "sections": [
                    make_section("CS101", day="Monday", room="A101"),
                    make_section("MATH101", day="Tuesday", room="A101"),
                ],
            }
        },
        **extra,
    }
    return client.post("/api/schedules", json=payload)


def setup_groups(client, level=1, students=4, per_group=2):
    for index in range(students):
        client.post(
            "/api/students",
            json={"student_number": f"L{level}-{index:03d}", "full_name": f"Student {index}", "level": level},
        )
    response = client.post(f"/api/groups/{level}/First Semester/allocate", json={"students_per_group": per_group})
    assert response.status_code == 200


def generate(client, courses=("CS101",), rooms=("A101", "A102")):
    return client.post(
        "/api/schedules/generate",
        json={
            "level": 1,
            "semester": "First Semester",
            "courses": list(courses),
            "available_rooms": list(rooms),
            "section_capacity": 30,
        },
    )


def test_manual_draft_is_validated_and_persisted(client):
    response = create_draft(client, label="Manual edit")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "draft"
    assert body["label"] == "Manual edit"
    assert body["total_sections"] == 2
    assert body["conflicts"] == 0
    assert body["efficiency"] == 100
    assert body["groups"]["A"]["student_count"] == 20
    assert body["groups"]["A"]["sections"][0]["window"] == {"day": "Monday", "start": "14:00", "end": "15:00"}

    listing = client.get("/api/schedules").json()
    assert [item["id"] for item in listing] == [body["id"]]


def test_conflicting_draft_is_rejected_and_not_saved(client):
    response = create_draft(
        client,
        groups={
            "A": {
                "sections": [
                    make_section("CS101", start="10:00", end="11:00", room="RoomA"),
                    make_section("MATH101", start="10:30", end="11:30", room="RoomA"),
                ]
            }
        },
    )

    assert response.status_code == 422
    violations = response.json()["details"]["violations"]
    assert [item["kind"] for item in violations] == ["room_conflict"]
    assert client.get("/api/schedules").json() == []


def test_section_in_midday_break_is_rejected_by_default_policy(client):
    response = create_draft(
        client,
        groups={"A": {"sections": [make_section("CS101", day="Monday", start="12:00", end="13:00")]}},
    )

    assert response.status_code == 422
    assert response.json()["details"]["violations"][0]["kind"] == "blackout_overlap"


def test_section_without_window_is_an_input_error(client):
    broken = make_section("CS101")
    del broken["window"]

    response = create_draft(client, groups={"A": {"sections": [broken]}})

    assert response.status_code == 422
    assert response.json()["message"] == "Malformed section"
    assert response.json()["details"]["group_name"] == "A"


def test_capacity_overflow_is_counted_but_saved(client):
    response = create_draft(
        client,
        groups={"A": {"sections": [make_section("CS101", student_count=45, capacity=30)]}},
    )

    assert response.status_code == 201
    assert response.json()["capacity_warnings"] == 1
    assert response.json()["conflicts"] == 0


def test_draft_cannot_be_approved_before_submit(client):
    version_id = create_draft(client).json()["id"]

    response = client.post(f"/api/schedules/{version_id}/approve")

    assert response.status_code == 409


def test_submit_approve_and_edit_cycle(client):
    version_id = create_draft(client).json()["id"]

    submitted = client.post(f"/api/schedules/{version_id}/submit")
    assert submitted.status_code == 200
    assert submitted.json()["status"] == "generated"
    assert submitted.json()["generated_at"] is not None

    approved = client.post(f"/api/schedules/{version_id}/approve")
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["approved_at"] is not None

    edited = client.put(
        f"/api/schedules/{version_id}/sections",
        json={"groups": {"A": {"student_count": 20, "sections": [make_section("CS101", day="Wednesday")]}}},
    )
    assert edited.status_code == 200
    assert edited.json()["status"] == "draft"
    assert edited.json()["approved_at"] is None
    assert edited.json()["total_sections"] == 1

    assert client.post(f"/api/schedules/{version_id}/approve").status_code == 409


def test_rejected_edit_leaves_version_untouched(client):
    version_id = create_draft(client).json()["id"]
    client.post(f"/api/schedules/{version_id}/submit")
    client.post(f"/api/schedules/{version_id}/approve")

    response = client.put(
        f"/api/schedules/{version_id}/sections",
        json={
            "groups": {
                "A": {
                    "sections": [
                        make_section("CS101", section_label="A", day="Monday"),
                        make_section("CS101", section_label="B", day="Tuesday"),
                    ]
                }
            }
        },
    )

    assert response.status_code == 422
    assert response.json()["details"]["violations"][0]["kind"] == "duplicate_course"
    stored = client.get(f"/api/schedules/{version_id}").json()
    assert stored["status"] == "approved"
    assert stored["total_sections"] == 2


def test_submit_revalidates_against_current_policy(client):
    version_id = create_draft(client).json()["id"]
    client.put(
        "/api/settings/schedule-policy",
        json={"blackout_windows": [{"day": "Monday", "start": "14:30", "end": "15:30"}]},
    )

    response = client.post(f"/api/schedules/{version_id}/submit")

    assert response.status_code == 422
    assert client.get(f"/api/schedules/{version_id}").json()["status"] == "draft"


def test_deleted_version_is_hidden(client):
    version_id = create_draft(client).json()["id"]

    assert client.delete(f"/api/schedules/{version_id}").json() == {"success": True}
    assert client.get(f"/api/schedules/{version_id}").status_code == 404
    assert client.get("/api/schedules").json() == []
    assert client.post(f"/api/schedules/{version_id}/submit").status_code == 404


def test_generate_builds_one_section_list_per_group(client, recommender):
    setup_groups(client)
    recommender.responses = {
        "A": [make_recommendation("CS101", room="A101", students=2)],
        "B": [make_recommendation("CS101", room="A102", students=2)],
    }

    response = generate(client)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "generated"
    assert set(body["groups"]) == {"A", "B"}
    assert body["groups"]["A"]["student_count"] == 2
    assert body["total_sections"] == 2
    assert body["efficiency"] == 100
    assert [call["group_name"] for call in recommender.calls] == ["A", "B"]
    constraints = recommender.calls[0]["constraints"]
    assert constraints.students_per_course == {"CS101": 2}
    assert constraints.available_rooms == ["A101", "A102"]
    assert len(constraints.blocked_slots) == 5

    approved = client.post(f"/api/schedules/{body['id']}/approve")
    assert approved.status_code == 200


def test_generate_rejects_recommender_conflicts(client, recommender):
    setup_groups(client)
    recommender.responses = {
        "A": [make_recommendation("CS101", room="A101")],
        "B": [make_recommendation("MATH101", room="A101")],
    }

    response = generate(client, courses=("CS101", "MATH101"))

    assert response.status_code == 422
    violation = response.json()["details"]["violations"][0]
    assert violation["kind"] == "room_conflict"
    assert {ref["group_name"] for ref in violation["offending_section_refs"]} == {"A", "B"}
    assert client.get("/api/schedules").json() == []


def test_generate_tolerates_recommender_outage(client, recommender):
    setup_groups(client)
    recommender.responses = {
        "A": ExternalServiceError("recommender down"),
        "B": [make_recommendation("CS101", room="A102")],
    }

    response = generate(client, courses=("CS101", "MATH101"))

    assert response.status_code == 201
    body = response.json()
    assert body["groups"]["A"]["sections"] == []
    assert body["total_sections"] == 1
    assert body["efficiency"] == 25


def test_generate_rejects_malformed_recommender_output(client, recommender):
    setup_groups(client)
    recommender.responses = {"A": [{"course_code": "CS101", "room": "A101"}]}

    response = generate(client)

    assert response.status_code == 422
    assert response.json()["message"] == "Malformed recommender entry"
    assert client.get("/api/schedules").json() == []


def test_generate_requires_group_settings(client):
    response = generate(client)

    assert response.status_code == 404


def test_listing_filters_by_level_and_semester(client):
    create_draft(client)
    client.post(
        "/api/schedules",
        json={"level": 2, "semester": "First Semester", "groups": {"A": {"sections": [make_section(room="B201")]}}},
    )

    assert len(client.get("/api/schedules").json()) == 2
    assert len(client.get("/api/schedules", params={"level": 2}).json()) == 1
    assert client.get("/api/schedules", params={"semester": "Second Semester"}).json() == []


def test_group_with_two_courses_at_once_is_rejected(client):
    response = create_draft(
        client,
        groups={
            "A": {
                "sections": [
                    make_section("CS101", start="10:00", end="11:00", room="R1"),
                    make_section("MATH101", start="10:00", end="11:00", room="R2"),
                ]
            }
        },
    )

    assert response.status_code == 422
    violation = response.json()["details"]["violations"][0]
    assert violation["kind"] == "group_time_overlap"
    assert violation["course_codes"] == ["CS101", "MATH101"]
    assert client.get("/api/schedules").json() == []


def test_room_held_by_another_level_is_rejected(client):
    level_one = client.post(
        "/api/schedules",
        json={"level": 1, "semester": "First Semester", "groups": {"A": {"sections": [make_section(room="R1")]}}},
    )
    assert level_one.status_code == 201

    level_two = client.post(
        "/api/schedules",
        json={
            "level": 2,
            "semester": "First Semester",
            "groups": {"A": {"sections": [make_section("BIO201", room="R1")]}},
        },
    )

    assert level_two.status_code == 422
    violation = level_two.json()["details"]["violations"][0]
    assert violation["kind"] == "room_conflict"
    refs = violation["offending_section_refs"]
    assert (refs[0]["course_code"], refs[0]["level"]) == ("BIO201", None)
    assert (refs[1]["course_code"], refs[1]["level"], refs[1]["version_id"]) == ("CS101", 1, level_one.json()["id"])
    assert len(client.get("/api/schedules").json()) == 1


def test_other_level_rooms_checked_on_edit_and_freed_on_delete(client):
    level_one_id = client.post(
        "/api/schedules",
        json={"level": 1, "semester": "First Semester", "groups": {"A": {"sections": [make_section(room="R1")]}}},
    ).json()["id"]
    level_two_id = client.post(
        "/api/schedules",
        json={"level": 2, "semester": "First Semester", "groups": {"A": {"sections": [make_section(room="R2")]}}},
    ).json()["id"]
    moved = {"groups": {"A": {"sections": [make_section(room="R1")]}}}

    assert client.put(f"/api/schedules/{level_two_id}/sections", json=moved).status_code == 422

    client.delete(f"/api/schedules/{level_one_id}")
    response = client.put(f"/api/schedules/{level_two_id}/sections", json=moved)
    assert response.status_code == 200
    assert response.json()["groups"]["A"]["sections"][0]["room"] == "R1"


def test_same_room_in_another_semester_is_free(client):
    client.post(
        "/api/schedules",
        json={"level": 1, "semester": "First Semester", "groups": {"A": {"sections": [make_section(room="R1")]}}},
    )

    response = client.post(
        "/api/schedules",
        json={"level": 2, "semester": "Second Semester", "groups": {"A": {"sections": [make_section(room="R1")]}}},
    )

    assert response.status_code == 201


def test_generated_sections_are_checked_against_other_levels(client, recommender):
    client.post(
        "/api/schedules",
        json={"level": 2, "semester": "First Semester", "groups": {"A": {"sections": [make_section(room="A101")]}}},
    )
    setup_groups(client)
    recommender.responses = {
        "A": [make_recommendation("CS101", room="A101")],
        "B": [make_recommendation("CS101", room="A102")],
    }

    response = generate(client)

    assert response.status_code == 422
    refs = response.json()["details"]["violations"][0]["offending_section_refs"]
    assert {ref["level"] for ref in refs} == {None, 2}
