"""Project statistics engine."""

import pytest

from artifact_review.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from artifact_review.services import project_stats, review_service


def test_empty_project_has_zeroed_stats(project):
    stats = project_stats.get_project_stats(project.id)

    assert set(stats["stats"]) == {
        "requirements", "stories", "activity_diagrams", "use_case_diagrams",
        "sequence_diagrams", "class_diagrams", "design_patterns", "mockups",
    }
    assert stats["total_artifacts"] == 0
    assert stats["total_reviews"] == 0
    assert stats["overall_average_grade"] == 0
    assert stats["completion_percentage"] == 0
    assert stats["project"]["name"] == "Library System"


def test_completion_percentage(project, admin, make_requirement, make_story):
    reqs = [make_requirement(project) for _ in range(6)]
    for _ in range(4):
        make_story(project)
    for req, rating in zip(reqs, (4, 3, 4, 3)):
        review_service.submit_review(admin, "requirements", req.id, rating, canonical=True)

    stats = project_stats.get_project_stats(project.id)

    assert stats["total_artifacts"] == 10
    assert stats["total_reviews"] == 4
    assert stats["completion_percentage"] == 40.0
    assert stats["stats"]["requirements"] == {"total": 6, "reviewed": 4, "average_rating": 3.5}
    assert stats["stats"]["stories"] == {"total": 4, "reviewed": 0, "average_rating": 0}


def test_overall_grade_ignores_unreviewed_kinds(project, admin, make_requirement, make_story, make_class_diagram):
    req = make_requirement(project)
    story = make_story(project)
    make_class_diagram(project)
    review_service.submit_review(admin, "requirements", req.id, 4, canonical=True)
    review_service.submit_review(admin, "stories", story.id, 5, canonical=True)

    stats = project_stats.get_project_stats(project.id)
    assert stats["overall_average_grade"] == 4.5


def test_only_canonical_reviews_count(project, admin, member, make_requirement):
    req = make_requirement(project)
    review_service.submit_review(member, "requirements", req.id, 5)
    review_service.submit_review(admin, "requirements", req.id, 1)

    stats = project_stats.get_project_stats(project.id)
    assert stats["stats"]["requirements"]["reviewed"] == 0
    assert stats["total_reviews"] == 0

    review_service.submit_review(admin, "requirements", req.id, 2, canonical=True)
    stats = project_stats.get_project_stats(project.id)
    assert stats["stats"]["requirements"] == {"total": 1, "reviewed": 1, "average_rating": 2.0}
    assert stats["completion_percentage"] == 100.0


def test_average_rating_is_rounded(project, admin, make_requirement):
    ratings = [4, 4, 3.5]
    for rating in ratings:
        req = make_requirement(project)
        review_service.submit_review(admin, "requirements", req.id, rating, canonical=True)

    stats = project_stats.get_project_stats(project.id)
    assert stats["stats"]["requirements"]["average_rating"] == 3.83


def test_missing_project_raises():
    with pytest.raises(NotFoundError):
        project_stats.get_project_stats(9999)


def test_access_is_checked_when_actor_given(project, outsider):
    with pytest.raises(ForbiddenError):
        project_stats.get_project_stats(project.id, actor=outsider)


# ── Listing ──────────────────────────────────────────────────────────────


@pytest.fixture()
def three_projects(admin, member, make_project, make_requirement):
    alpha = make_project(name="Alpha", members=[member], description="Hotel booking")
    beta = make_project(name="Beta", description="Library catalogue")
    gamma = make_project(name="Gamma", members=[member])

    for project, rating in ((alpha, 2), (beta, 5), (gamma, 3)):
        req = make_requirement(project)
        review_service.submit_review(admin, "requirements", req.id, rating, canonical=True)
    return alpha, beta, gamma


def test_listing_sorts_by_name(three_projects, admin):
    result = project_stats.get_projects_stats(sort="-name", actor=admin)
    assert [i["project"]["name"] for i in result["items"]] == ["Gamma", "Beta", "Alpha"]
    assert result["total"] == 3


def test_listing_sorts_by_grade(three_projects, admin):
    result = project_stats.get_projects_stats(sort="-overall_average_grade", actor=admin)
    assert [i["overall_average_grade"] for i in result["items"]] == [5.0, 3.0, 2.0]


def test_listing_search_matches_name_or_description(three_projects, admin):
    by_description = project_stats.get_projects_stats(search="library", actor=admin)
    by_name = project_stats.get_projects_stats(search="ALP", actor=admin)

    assert [i["project"]["name"] for i in by_description["items"]] == ["Beta"]
    assert [i["project"]["name"] for i in by_name["items"]] == ["Alpha"]


def test_listing_hides_foreign_projects_from_members(three_projects, member):
    result = project_stats.get_projects_stats(sort="name", actor=member)
    assert [i["project"]["name"] for i in result["items"]] == ["Alpha", "Gamma"]


def test_listing_paginates(three_projects, admin):
    result = project_stats.get_projects_stats(page=2, limit=2, sort="name", actor=admin)
    assert [i["project"]["name"] for i in result["items"]] == ["Gamma"]
    assert result["pages"] == 2
    assert result["page"] == 2


def test_listing_caps_limit(three_projects, admin):
    result = project_stats.get_projects_stats(limit=1000, actor=admin)
    assert result["limit"] == project_stats.MAX_PAGE_SIZE


def test_listing_rejects_unknown_sort(admin):
    with pytest.raises(ValidationError):
        project_stats.get_projects_stats(sort="rating", actor=admin)
