def create_students(client, level, count, *, prefix="S", irregular=False, start=0):
    for index in range(start, start + count):
        response = client.post(
            "/api/students",
            json={
                "student_number": f"{prefix}{index:03d}",
                "full_name": f"Student {prefix}{index:03d}",
                "level": level,
                "is_irregular": irregular,
            },
        )
        assert response.status_code == 201


def test_calculate_counts_only_regular_students(client):
    create_students(client, level=1, count=7)
    create_students(client, level=1, count=2, prefix="IRR", irregular=True)
    create_students(client, level=2, count=5, prefix="L2")

    response = client.post("/api/groups/1/First Semester/calculate", json={"students_per_group": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["total_students"] == 7
    assert body["num_groups"] == 3
    assert body["group_names"] == ["A", "B", "C"]


def test_calculate_uses_default_group_size(client):
    create_students(client, level=1, count=30)

    response = client.post("/api/groups/1/First Semester/calculate")

    assert response.status_code == 200
    assert response.json()["students_per_group"] == 25
    assert response.json()["num_groups"] == 2


def test_calculate_with_no_students_gives_one_group(client):
    response = client.post("/api/groups/3/First Semester/calculate", json={"students_per_group": 25})

    assert response.status_code == 200
    assert response.json()["num_groups"] == 1
    assert response.json()["group_names"] == ["A"]


def test_calculate_rejects_non_positive_group_size(client):
    response = client.post("/api/groups/1/First Semester/calculate", json={"students_per_group": 0})

    assert response.status_code == 422
    assert "students_per_group" in response.json()["message"]


def test_assign_excludes_irregular_students(client):
    create_students(client, level=1, count=7)
    create_students(client, level=1, count=2, prefix="IRR", irregular=True)
    client.post("/api/groups/1/First Semester/calculate", json={"students_per_group": 3})

    response = client.post("/api/groups/1/First Semester/assign")

    assert response.status_code == 200
    body = response.json()
    assert body["group_sizes"] == {"A": 3, "B": 2, "C": 2}
    assert body["irregular_excluded"] == 2
    assert len(body["assignments"]) == 7

    students = client.get("/api/students", params={"level": 1}).json()
    by_number = {student["student_number"]: student["group_name"] for student in students}
    assert by_number["S000"] == "A"
    assert by_number["S003"] == "B"
    assert by_number["S006"] == "C"
    assert by_number["IRR000"] is None
    assert by_number["IRR001"] is None


def test_assign_requires_settings(client):
    response = client.post("/api/groups/4/First Semester/assign")

    assert response.status_code == 404


def test_assign_rejects_stale_settings(client):
    create_students(client, level=1, count=4)
    client.post("/api/groups/1/First Semester/calculate", json={"students_per_group": 2})
    create_students(client, level=1, count=1, start=4)

    response = client.post("/api/groups/1/First Semester/assign")

    assert response.status_code == 422


def test_allocate_supersedes_previous_assignment(client):
    create_students(client, level=1, count=6)

    first = client.post("/api/groups/1/First Semester/allocate", json={"students_per_group": 2})
    assert first.status_code == 200
    assert first.json()["group_sizes"] == {"A": 2, "B": 2, "C": 2}

    second = client.post("/api/groups/1/First Semester/allocate", json={"students_per_group": 3})
    assert second.status_code == 200
    assert second.json()["group_sizes"] == {"A": 3, "B": 3}

    setting = client.get("/api/groups/1/First Semester").json()
    assert setting["num_groups"] == 2
    assert setting["students_per_group"] == 3

    groups = {student["group_name"] for student in client.get("/api/students", params={"level": 1}).json()}
    assert groups == {"A", "B"}


def test_allocate_is_idempotent(client):
    create_students(client, level=1, count=9)

    first = client.post("/api/groups/1/First Semester/allocate", json={"students_per_group": 4})
    second = client.post("/api/groups/1/First Semester/allocate")

    assert first.json()["assignments"] == second.json()["assignments"]


def test_distribution_and_listing(client):
    create_students(client, level=1, count=5)
    client.post("/api/groups/1/First Semester/allocate", json={"students_per_group": 3})
    client.post("/api/groups/1/Second Semester/calculate", json={"students_per_group": 5})

    distribution = client.get("/api/groups/distribution/1").json()
    assert distribution["A"]["count"] == 3
    assert distribution["B"]["count"] == 2
    assert distribution["A"]["students"][0] == "Student S000"

    all_settings = client.get("/api/groups").json()
    assert [item["semester"] for item in all_settings] == ["First Semester", "Second Semester"]
    first_only = client.get("/api/groups", params={"semester": "First Semester"}).json()
    assert len(first_only) == 1


def test_duplicate_student_number_is_rejected(client):
    create_students(client, level=1, count=1)

    response = client.post(
        "/api/students",
        json={"student_number": "S000", "full_name": "Someone Else", "level": 1},
    )

    assert response.status_code == 409


def test_semester_named_distribution_is_reachable(client):
    create_students(client, level=1, count=4)
    client.post("/api/groups/1/distribution/calculate", json={"students_per_group": 2})

    response = client.get("/api/groups/1/distribution")

    assert response.status_code == 200
    assert response.json()["semester"] == "distribution"
    assert response.json()["num_groups"] == 2
