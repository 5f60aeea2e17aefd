"""Aggregate rubric engine, rubric evaluations and general comments."""

import pytest

from artifact_review.core.exceptions import (
    ForbiddenError,
    InvalidArtifactTypeError,
    NotFoundError,
    ValidationError,
)
from artifact_review.models import db as _db
from artifact_review.models.rubric import AggregateRubric
from artifact_review.services import general_comment_service, review_service, rubric_service


def _canonical(admin, artifact_type, artifact_id, rating, **scores):
    review_service.submit_review(
        admin, artifact_type, artifact_id, rating, scores=scores, canonical=True,
    )


def test_quantification_averages_only_non_functional(project, admin, make_requirement):
    functional = make_requirement(project, req_type="functional")
    non_functional = make_requirement(project, req_type="non_functional")
    _canonical(
        admin, "requirements", functional.id, 4,
        syntax_score=4, categorization_score=4, scope_definition_score=4, quantification_score=5,
    )
    _canonical(
        admin, "requirements", non_functional.id, 2,
        syntax_score=2, categorization_score=2, scope_definition_score=2, quantification_score=3,
    )

    result = rubric_service.recompute_aggregate(project.id, "requirements")

    assert result["criteria_averages"]["quantification_score"] == pytest.approx(3.0)
    assert result["criteria_averages"]["syntax_score"] == pytest.approx(3.0)
    assert result["overall_score"] == pytest.approx(3.0)
    assert result["review_count"] == 2


def test_criteria_without_values_count_as_zero(project, admin, make_class_diagram):
    diagram = make_class_diagram(project)
    _canonical(
        admin, "class_diagrams", diagram.id, 4,
        class_structure_score=5, relationship_modeling_score=4,
    )

    result = rubric_service.recompute_aggregate(project.id, "class_diagrams")

    assert result["criteria_averages"] == {
        "class_structure_score": 5.0,
        "relationship_modeling_score": 4.0,
        "completeness_score": 0.0,
        "clarity_score": 0.0,
        "design_principles_score": 0.0,
    }
    assert result["overall_score"] == pytest.approx(1.8)


def test_only_canonical_reviews_feed_the_aggregate(project, admin, member, make_story):
    story = make_story(project)
    review_service.submit_review(member, "stories", story.id, 1, scores={"story_format_score": 1})
    _canonical(admin, "stories", story.id, 5, story_format_score=5)

    result = rubric_service.recompute_aggregate(project.id, "stories")
    assert result["review_count"] == 1
    assert result["criteria_averages"]["story_format_score"] == 5.0


def test_no_canonical_reviews_stores_empty_aggregate(project):
    result = rubric_service.recompute_aggregate(project.id, "mockups")

    assert result["criteria_averages"] == {}
    assert result["overall_score"] == 0
    assert result["review_count"] == 0
    assert AggregateRubric.query.filter_by(project_id=project.id).count() == 1


def test_recompute_is_idempotent_and_single_row(project, admin, make_requirement):
    req = make_requirement(project, req_type="non_functional")
    _canonical(admin, "requirements", req.id, 3, syntax_score=3, quantification_score=2)

    first = rubric_service.recompute_aggregate(project.id, "requirements")
    second = rubric_service.recompute_aggregate(project.id, "requirements")

    for key in ("criteria_averages", "overall_score", "review_count"):
        assert first[key] == second[key]
    assert AggregateRubric.query.filter_by(
        project_id=project.id, artifact_type="requirements",
    ).count() == 1


def test_aggregate_reflects_deleted_artifacts(project, admin, make_story):
    keep = make_story(project, title="keep")
    drop = make_story(project, title="drop")
    _canonical(admin, "stories", keep.id, 4, story_format_score=4)
    _canonical(admin, "stories", drop.id, 2, story_format_score=2)

    _db.session.delete(drop)
    _db.session.commit()

    result = rubric_service.recompute_aggregate(project.id, "stories")
    assert result["review_count"] == 1
    assert result["criteria_averages"]["story_format_score"] == 4.0


def test_recompute_validates_type_and_project(project):
    with pytest.raises(InvalidArtifactTypeError):
        rubric_service.recompute_aggregate(project.id, "story")
    with pytest.raises(NotFoundError):
        rubric_service.recompute_aggregate(9999, "stories")


def test_get_aggregate_returns_empty_shape_before_any_review(project, member):
    payload = rubric_service.get_aggregate_rubric(member, project.id, "sequence_diagrams")
    assert payload["criteria_averages"] == {}
    assert payload["overall_score"] == 0
    assert payload["review_count"] == 0
    assert payload["last_updated"] is None


def test_get_aggregate_checks_access(project, outsider):
    with pytest.raises(ForbiddenError):
        rubric_service.get_aggregate_rubric(outsider, project.id, "stories")


# ── Rubric evaluation ────────────────────────────────────────────────────


def test_rubric_evaluation_round_trip(project, member):
    empty = rubric_service.get_rubric_evaluation(member, project.id, "mockups")
    assert empty["criteria"] == []

    saved, created = rubric_service.save_rubric_evaluation(
        member, project.id, "mockups",
        [{"name": "Consistency", "score": 4}, {"name": "Flow", "score": 3, "comment": "ok"}],
        general_comment="  Looks good  ",
    )
    assert created is True
    assert saved["overall_score"] == pytest.approx(3.5)
    assert saved["general_comment"] == "Looks good"

    updated, created_again = rubric_service.save_rubric_evaluation(
        member, project.id, "mockups", [{"name": "Consistency", "score": 5}],
    )
    assert created_again is False
    assert updated["overall_score"] == pytest.approx(5.0)
    assert updated["general_comment"] == "Looks good"


@pytest.mark.parametrize("criteria", [
    "not a list",
    [{"score": 3}],
    [{"name": "  ", "score": 3}],
    [{"name": "Flow", "score": 7}],
    [{"name": "Flow"}],
])
def test_rubric_evaluation_rejects_bad_criteria(project, member, criteria):
    with pytest.raises(ValidationError):
        rubric_service.save_rubric_evaluation(member, project.id, "mockups", criteria)


# ── General comment ──────────────────────────────────────────────────────


def test_general_comment_save_and_get(project, member):
    assert general_comment_service.get_general_comment(member, project.id, "stories")["comment"] == ""

    _, created = general_comment_service.save_general_comment(
        member, project.id, "stories", "Stories need acceptance criteria",
    )
    _, created_again = general_comment_service.save_general_comment(
        member, project.id, "stories", "Better now",
    )

    assert (created, created_again) == (True, False)
    assert general_comment_service.get_general_comment(
        member, project.id, "stories",
    )["comment"] == "Better now"


@pytest.mark.parametrize("comment", [None, "", "   ", 12])
def test_general_comment_must_not_be_blank(project, member, comment):
    with pytest.raises(ValidationError):
        general_comment_service.save_general_comment(member, project.id, "stories", comment)


def test_single_functional_requirement_scenario(project, admin, member, make_requirement):
    from artifact_review.services import project_stats

    req = make_requirement(project, req_type="functional")
    _canonical(admin, "requirements", req.id, 4, syntax_score=5, categorization_score=3)

    aggregate = rubric_service.get_aggregate_rubric(member, project.id, "requirements")
    assert aggregate["criteria_averages"]["syntax_score"] == 5.0
    assert aggregate["criteria_averages"]["categorization_score"] == 3.0
    assert aggregate["criteria_averages"]["quantification_score"] == 0.0
    assert aggregate["review_count"] == 1

    stats = project_stats.get_project_stats(project.id)
    assert stats["stats"]["requirements"] == {"total": 1, "reviewed": 1, "average_rating": 4.0}
