"""HTTP contract: auth, status codes and payload shapes."""

import jwt
import pytest

# Uses shared fixtures from conftest.py: client, session (autouse), project, users


def test_health_needs_no_auth(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"


def test_missing_token_is_401(client, project):
    res = client.get(f"/api/v1/projects/{project.id}/stats")
    assert res.status_code == 401
    assert res.get_json()["code"] == "ERR_UNAUTHORIZED"


def test_bad_token_is_401(client, app, project, member):
    token = jwt.encode(
        {"sub": str(member.id), "type": "access"},
        "a-completely-different-signing-secret-value",
        algorithm="HS256",
    )
    res = client.get(
        f"/api/v1/projects/{project.id}/stats",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert res.status_code == 401


def test_submit_review_create_then_update(client, project, member, make_requirement, auth_headers):
    req = make_requirement(project)
    body = {"artifact_type": "requirements", "artifact_id": req.id, "rating": 3}

    first = client.post("/api/v1/reviews", json=body, headers=auth_headers(member))
    second = client.post(
        "/api/v1/reviews", json={**body, "rating": 4.5, "comment": "better"},
        headers=auth_headers(member),
    )

    assert first.status_code == 201
    assert second.status_code == 200
    data = second.get_json()
    assert data["id"] == first.get_json()["id"]
    assert data["rating"] == 4.5
    assert data["comment"] == "better"


def test_submit_review_validation_errors(client, project, member, make_requirement, auth_headers):
    req = make_requirement(project)
    headers = auth_headers(member)

    missing = client.post("/api/v1/reviews", json={"rating": 3}, headers=headers)
    assert missing.status_code == 400
    assert set(missing.get_json()["details"]) == {"artifact_type", "artifact_id"}

    bad_type = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "story", "artifact_id": req.id, "rating": 3},
        headers=headers,
    )
    assert bad_type.status_code == 400
    assert bad_type.get_json()["code"] == "ERR_INVALID_ARTIFACT_TYPE"
    assert "stories" in bad_type.get_json()["details"]["valid_types"]

    bad_rating = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "requirements", "artifact_id": req.id, "rating": 11},
        headers=headers,
    )
    assert bad_rating.status_code == 400
    assert bad_rating.get_json()["code"] == "ERR_VALIDATION_INVALID"


def test_submit_review_not_found_and_forbidden(client, project, outsider, make_requirement, auth_headers):
    req = make_requirement(project)

    missing = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "requirements", "artifact_id": 4242, "rating": 3},
        headers=auth_headers(outsider),
    )
    forbidden = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "requirements", "artifact_id": req.id, "rating": 3},
        headers=auth_headers(outsider),
    )

    assert missing.status_code == 404
    assert forbidden.status_code == 403
    assert forbidden.get_json()["code"] == "ERR_FORBIDDEN"


def test_canonical_review_endpoint(client, project, admin, member, make_story, auth_headers):
    story = make_story(project)
    url = f"/api/v1/reviews/stories/{story.id}/canonical"

    before = client.get(url, headers=auth_headers(member)).get_json()
    assert before["reviewed"] is False
    assert before["rating"] == 0

    res = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "stories", "artifact_id": story.id, "rating": 5, "canonical": True},
        headers=auth_headers(admin),
    )
    assert res.status_code == 201

    after = client.get(url, headers=auth_headers(member)).get_json()
    assert after["reviewed"] is True
    assert after["rating"] == 5.0
    assert after["canonical"] is True


def test_canonical_submission_by_member_is_403(client, project, member, make_story, auth_headers):
    story = make_story(project)
    res = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "stories", "artifact_id": story.id, "rating": 5, "canonical": True},
        headers=auth_headers(member),
    )
    assert res.status_code == 403


@pytest.mark.parametrize("flag", ["false", "true", 1, None])
def test_canonical_flag_must_be_boolean(client, project, admin, make_story, auth_headers, flag):
    story = make_story(project)
    res = client.post(
        "/api/v1/reviews",
        json={"artifact_type": "stories", "artifact_id": story.id, "rating": 5, "canonical": flag},
        headers=auth_headers(admin),
    )

    assert res.status_code == 400
    assert "canonical" in res.get_json()["details"]
    canonical = client.get(
        f"/api/v1/reviews/stories/{story.id}/canonical", headers=auth_headers(admin),
    ).get_json()
    assert canonical["reviewed"] is False


def test_framework_http_errors_keep_their_status_code(client):
    unknown = client.get("/api/v1/no-such-route")
    wrong_method = client.delete("/api/v1/health")

    assert unknown.status_code == 404
    assert unknown.get_json()["code"] == "ERR_NOT_FOUND"
    assert wrong_method.status_code == 405
    assert wrong_method.get_json()["code"] == "ERR_HTTP"


def test_bulk_endpoint(client, project, admin, make_requirement, auth_headers):
    req = make_requirement(project)
    res = client.post(
        "/api/v1/reviews/bulk",
        json={"reviews": [
            {"artifact_type": "requirements", "artifact_id": req.id, "rating": 4},
            {"artifact_type": "requirements", "artifact_id": 999, "rating": 4},
        ]},
        headers=auth_headers(admin),
    )
    assert res.status_code == 200
    data = res.get_json()
    assert (data["saved"], data["failed"]) == (1, 1)


def test_mine_and_list_endpoints(client, project, member, make_requirement, auth_headers):
    req = make_requirement(project)
    client.post(
        "/api/v1/reviews",
        json={"artifact_type": "requirements", "artifact_id": req.id, "rating": 2},
        headers=auth_headers(member),
    )

    mine = client.get(f"/api/v1/reviews/requirements/{req.id}/mine", headers=auth_headers(member))
    listing = client.get(f"/api/v1/reviews/requirements/{req.id}", headers=auth_headers(member))

    assert mine.get_json()["rating"] == 2.0
    assert listing.get_json()["total"] == 1
    assert listing.get_json()["items"][0]["reviewer_name"] == "Student One"


def test_aggregate_endpoint(client, project, admin, member, make_requirement, auth_headers):
    req = make_requirement(project, req_type="non_functional")
    client.post(
        "/api/v1/reviews",
        json={
            "artifact_type": "requirements", "artifact_id": req.id, "rating": 4,
            "canonical": True, "scores": {"syntax_score": 4, "quantification_score": 2},
        },
        headers=auth_headers(admin),
    )

    res = client.get(
        f"/api/v1/projects/{project.id}/rubrics/requirements/aggregate",
        headers=auth_headers(member),
    )
    data = res.get_json()
    assert res.status_code == 200
    assert data["review_count"] == 1
    assert data["criteria_averages"]["quantification_score"] == 2.0
    assert data["overall_score"] == pytest.approx(1.5)


def test_aggregate_endpoint_rejects_bad_type(client, project, member, auth_headers):
    res = client.get(
        f"/api/v1/projects/{project.id}/rubrics/story/aggregate", headers=auth_headers(member),
    )
    assert res.status_code == 400


def test_evaluation_and_general_comment_endpoints(client, project, member, auth_headers):
    headers = auth_headers(member)
    base = f"/api/v1/projects/{project.id}"

    put_eval = client.put(
        f"{base}/rubrics/mockups/evaluation",
        json={"criteria": [{"name": "Flow", "score": 4}]},
        headers=headers,
    )
    assert put_eval.status_code == 201
    assert client.get(f"{base}/rubrics/mockups/evaluation", headers=headers).get_json()[
        "overall_score"
    ] == 4.0

    put_comment = client.put(
        f"{base}/general-comments/mockups", json={"comment": "Nice flows"}, headers=headers,
    )
    assert put_comment.status_code == 201
    assert client.get(f"{base}/general-comments/mockups", headers=headers).get_json()[
        "comment"
    ] == "Nice flows"

    blank = client.put(f"{base}/general-comments/mockups", json={"comment": " "}, headers=headers)
    assert blank.status_code == 400


def test_review_sheet_endpoint(client, project, admin, member, make_requirement, auth_headers):
    first = make_requirement(project, text="first")
    make_requirement(project, text="second")
    client.post(
        "/api/v1/reviews",
        json={"artifact_type": "requirements", "artifact_id": first.id, "rating": 3, "canonical": True},
        headers=auth_headers(admin),
    )

    member_sheet = client.get(
        f"/api/v1/projects/{project.id}/review-sheet/requirements", headers=auth_headers(member),
    ).get_json()
    admin_sheet = client.get(
        f"/api/v1/projects/{project.id}/review-sheet/requirements", headers=auth_headers(admin),
    ).get_json()

    assert member_sheet["project_name"] == "Library System"
    assert [a["seq"] for a in member_sheet["artifacts"]] == [1, 2]
    assert [a["reviewed"] for a in member_sheet["artifacts"]] == [True, False]
    assert member_sheet["artifacts"][0]["is_editable"] is False
    assert admin_sheet["artifacts"][0]["is_editable"] is True
    assert member_sheet["aggregate_rubric"]["review_count"] == 1


def test_project_stats_endpoints(client, project, admin, member, make_requirement, auth_headers):
    req = make_requirement(project)
    make_requirement(project)
    client.post(
        "/api/v1/reviews",
        json={"artifact_type": "requirements", "artifact_id": req.id, "rating": 4, "canonical": True},
        headers=auth_headers(admin),
    )

    single = client.get(f"/api/v1/projects/{project.id}/stats", headers=auth_headers(member))
    assert single.status_code == 200
    assert single.get_json()["completion_percentage"] == 50.0

    listing = client.get(
        "/api/v1/projects/stats?page=1&limit=5&sort=name&search=library",
        headers=auth_headers(member),
    )
    data = listing.get_json()
    assert listing.status_code == 200
    assert data["total"] == 1
    assert data["items"][0]["overall_average_grade"] == 4.0

    bad_sort = client.get("/api/v1/projects/stats?sort=bogus", headers=auth_headers(member))
    assert bad_sort.status_code == 400

    missing = client.get("/api/v1/projects/9999/stats", headers=auth_headers(admin))
    assert missing.status_code == 404
