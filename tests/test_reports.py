"""
Tests for the survey-wide and per-subject report assemblers.
"""

import pytest

from adapters.report_store import InMemoryReportStore
from analytics.survey_reports import SurveyReportAssembler
from analytics.subject_reports import SubjectReportAssembler
from models.enums import SubmissionStatus
from conftest import SURVEY, TENANT


def survey_reports(builder):
    return SurveyReportAssembler(builder.store)


def subject_reports(builder):
    return SubjectReportAssembler(builder.store)


class TestHeatMap:
    """Tests for the subject heat map."""

    def test_peer_example(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        for _ in range(3):
            builder.rater("sub-1", "Peer", {"q1": "Good"})
        builder.rater("sub-1", "Peer")

        rows = survey_reports(builder).subject_heat_map(TENANT, SURVEY)
        assert len(rows) == 1
        peer = rows[0].relationship_data["Peer"]
        assert (peer.sent, peer.completed, peer.remaining) == (4, 3, 1)
        assert rows[0].grand_total.sent == 4

    def test_grand_total_sums_relationships(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.rater("sub-1", "Manager", {"q1": "Good"})
        builder.rater("sub-1", "peer")
        builder.rater("sub-1", None, {"q1": 4})

        row = survey_reports(builder).subject_heat_map(TENANT, SURVEY)[0]
        assert set(row.relationship_data) == {"Manager", "Peer", "Unknown"}
        assert (row.grand_total.sent, row.grand_total.completed, row.grand_total.remaining) == (3, 2, 1)

    def test_department_falls_back_to_designation(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1", designation="Engineer")
        builder.subject("sub-2", department="Sales", designation="Lead")
        builder.rater("sub-1", "Peer")
        builder.rater("sub-2", "Peer")
        rows = survey_reports(builder).subject_heat_map(TENANT, SURVEY)
        assert [(r.subject_id, r.department) for r in rows] == [("sub-1", "Engineer"), ("sub-2", "Sales")]

    def test_in_progress_not_completed(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.rater("sub-1", "Peer", {"q1": "Good"}, status=SubmissionStatus.IN_PROGRESS)
        row = survey_reports(builder).subject_heat_map(TENANT, SURVEY)[0]
        assert row.relationship_data["Peer"].completed == 0

    def test_inactive_assignments_and_subjects_ignored(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.subject("sub-2", is_active=False)
        builder.rater("sub-1", "Peer", {"q1": "Good"}, assignment_active=False)
        builder.rater("sub-1", "Manager")
        builder.rater("sub-2", "Peer", {"q1": "Good"})

        rows = survey_reports(builder).subject_heat_map(TENANT, SURVEY)
        assert [r.subject_id for r in rows] == ["sub-1"]
        assert list(rows[0].relationship_data) == ["Manager"]

    def test_unknown_survey_is_empty(self, single_rating_builder):
        assert survey_reports(single_rating_builder).subject_heat_map(TENANT, "nope") == []

    def test_other_tenant_sees_nothing(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.rater("sub-1", "Peer", {"q1": "Good"})
        assert survey_reports(builder).subject_heat_map("tenant-2", SURVEY) == []


class TestConsolidated:
    """Tests for consolidated export rows."""

    def test_rows_per_completed_submission(self, full_builder):
        builder = full_builder
        builder.subject("sub-1", employee_id="E1", department="Sales", designation="Lead")
        builder.rater("sub-1", "Peer", {
            "q1": "Excellent",
            "q2": "often",
            "m1": {"Strategy": 3, "Inspiration": "High"},
            "c1": "Keeps the team focused",
        })
        builder.rater("sub-1", "Manager", {"q1": 0}, status=SubmissionStatus.PENDING)

        rows = survey_reports(builder).subject_consolidated(TENANT, SURVEY)
        assert len(rows) == 1
        row = rows[0]
        assert row.relationship == "Peer"
        assert row.business_unit == "Sales"
        assert row.question_scores == {"q1": 5, "q2": 2, "m1:Strategy": 3, "m1:Inspiration": 5}
        assert row.competency_scores == {"Communication": 5, "Delivery": 2, "Vision": 8}
        assert row.cluster_scores == {"Leadership": 13, "Execution": 2}
        assert row.total_score == 15
        assert row.open_ended_responses == {"c1": "Keeps the team focused"}

    def test_business_unit_falls_back_to_designation(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1", designation="Engineer")
        builder.rater("sub-1", "Peer", {"q1": "Good"})
        row = survey_reports(builder).subject_consolidated(TENANT, SURVEY)[0]
        assert row.business_unit == "Engineer"
        assert row.department == ""

    def test_submission_without_blob_skipped(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.rater("sub-1", "Peer", {"q1": "Good"})
        builder.store.submissions[0] = builder.store.submissions[0].model_copy(
            update={"response_data": None}
        )
        assert survey_reports(builder).subject_consolidated(TENANT, SURVEY) == []


class TestRateeAverage:
    """Tests for self vs others rows."""

    def test_competency_without_self_scores_is_null(self, full_builder):
        builder = full_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Self", {"q1": 4}, employee_id="E1")
        builder.rater("sub-1", "Peer", {"q1": 2, "q2": "always"})

        row = survey_reports(builder).ratee_average(TENANT, SURVEY)[0]
        assert list(row.competency_scores) == ["Communication", "Delivery", "Vision"]
        assert row.competency_scores["Communication"].self_score == 4.0
        assert row.competency_scores["Communication"].others_score == 2.0
        assert row.competency_scores["Delivery"].self_score is None
        assert row.competency_scores["Delivery"].others_score == 3.0
        assert row.competency_scores["Vision"].others_score is None

    def test_assigned_subject_without_submissions(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.subject("sub-2")
        builder.rater("sub-1", "Peer")

        rows = survey_reports(builder).ratee_average(TENANT, SURVEY)
        assert [r.subject_id for r in rows] == ["sub-1"]
        pair = rows[0].competency_scores["Communication"]
        assert pair.self_score is None
        assert pair.others_score is None

    def test_department_falls_back_to_designation(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1", designation="Engineer")
        builder.rater("sub-1", "Peer", {"q1": "Good"})
        row = survey_reports(builder).ratee_average(TENANT, SURVEY)[0]
        assert row.department == "Engineer"


class TestHierarchyAndColumns:
    """Tests for the cluster listing and question columns."""

    def test_cluster_competency_hierarchy(self, full_builder):
        hierarchy = survey_reports(full_builder).cluster_competency_hierarchy(TENANT, SURVEY)
        assert [c.cluster_name for c in hierarchy.clusters] == ["Execution", "Leadership"]
        leadership = hierarchy.clusters[1]
        assert [c.competency_name for c in leadership.competencies] == ["Communication", "Vision"]
        assert [q.question_id for q in leadership.competencies[1].questions] == [
            "m1:Strategy", "m1:Inspiration",
        ]

    def test_same_competency_in_two_clusters(self, shared_general_builder):
        """q1 has only a cluster id, q2 has no metadata; both default to General."""
        hierarchy = survey_reports(shared_general_builder).cluster_competency_hierarchy(TENANT, SURVEY)
        tree = {
            cluster.cluster_name: [
                (c.competency_name, [q.question_id for q in c.questions]) for c in cluster.competencies
            ]
            for cluster in hierarchy.clusters
        }
        assert tree == {
            "Leadership": [("General", ["q1"])],
            "Uncategorized": [("General", ["q2"])],
        }

    def test_question_columns_order(self, full_builder):
        columns = survey_reports(full_builder).question_columns(TENANT, SURVEY)
        assert [c.question_id for c in columns] == [
            "q2", "q1", "m1:Strategy", "m1:Inspiration", "mt1:keep", "mt1:stop", "c1",
        ]

    def test_unknown_survey(self, full_builder):
        hierarchy = survey_reports(full_builder).cluster_competency_hierarchy(TENANT, "missing")
        assert hierarchy.clusters == []


class TestSubjectScoreReports:
    """Tests for high/low, gaps and the summary tree."""

    def test_blindspot_example(self, blindspot_builder):
        result = subject_reports(blindspot_builder).latent_strengths_blindspots(TENANT, SURVEY, "sub-1")
        assert result.latent_strengths == []
        assert result.blindspots[0].gap == -2.0
        assert result.blindspots[0].rank == 1

    def test_high_low(self, blindspot_builder):
        result = subject_reports(blindspot_builder).high_low_scores(TENANT, SURVEY, "sub-1")
        assert [i.average for i in result.highest_scores] == [3.0]
        assert result.lowest_scores == []

    def test_unknown_subject(self, blindspot_builder):
        reports = subject_reports(blindspot_builder)
        assert reports.high_low_scores(TENANT, SURVEY, "nobody").highest_scores == []
        assert reports.relationship_completion(TENANT, SURVEY, "nobody") == []

    def test_self_by_employee_id(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Peer", {"q1": "Excellent"}, employee_id="E1")
        builder.rater("sub-1", "Peer", {"q1": "Good"})
        result = subject_reports(builder).latent_strengths_blindspots(TENANT, SURVEY, "sub-1")
        assert result.blindspots[0].self_score == 5.0

    def test_subject_hierarchy_pools_scores(self, full_builder):
        builder = full_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Self", {"q1": 5, "m1": {"Strategy": 5}}, employee_id="E1")
        builder.rater("sub-1", "Manager", {"q1": 3, "q2": "often", "m1": {"Strategy": 1, "Inspiration": 3}})

        tree = subject_reports(builder).subject_hierarchy(TENANT, SURVEY, "sub-1")
        assert tree.relationship_types == ["Manager"]
        leadership = next(c for c in tree.clusters if c.cluster_name == "Leadership")
        assert leadership.self_score == 5.0
        # (3 + 1 + 3) / 3
        assert leadership.others_score == 2.33
        vision = next(c for c in leadership.competencies if c.competency_name == "Vision")
        assert vision.relationship_scores == {"Manager": 2.0}
        inspiration = vision.questions[1]
        assert inspiration.self_score is None
        assert inspiration.others_score == 3.0

    def test_subject_hierarchy_keeps_clusters_apart(self, shared_general_builder):
        builder = shared_general_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Self", {"q1": "Excellent", "q2": "Poor"}, employee_id="E1")
        builder.rater("sub-1", "Manager", {"q1": "Good", "q2": "Excellent"})

        tree = subject_reports(builder).subject_hierarchy(TENANT, SURVEY, "sub-1")
        scores = {
            c.cluster_name: (c.self_score, c.others_score, [q.question_id for q in c.competencies[0].questions])
            for c in tree.clusters
        }
        assert scores == {
            "Leadership": (5.0, 3.0, ["q1"]),
            "Uncategorized": (1.0, 5.0, ["q2"]),
        }


class TestCompletionReports:
    """Tests for completion and self-assessment status."""

    def test_relationship_completion_excludes_self(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Self", {"q1": 3}, employee_id="E1")
        builder.rater("sub-1", "Peer", {"q1": 3})
        builder.rater("sub-1", "Peer", {"q1": 4})
        builder.rater("sub-1", "Peer")
        builder.rater("sub-1", "Manager")

        stats = subject_reports(builder).relationship_completion(TENANT, SURVEY, "sub-1")
        assert [(s.relationship_type, s.total, s.completed, s.percent_complete) for s in stats] == [
            ("Manager", 1, 0, 0),
            ("Peer", 3, 2, 67),
        ]

    @pytest.mark.parametrize("status,expected", [
        (SubmissionStatus.COMPLETED, "Completed"),
        (SubmissionStatus.IN_PROGRESS, "In Progress"),
        (SubmissionStatus.PENDING, "Pending"),
    ])
    def test_self_assessment_status(self, single_rating_builder, status, expected):
        builder = single_rating_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Self", {"q1": 3}, status=status, employee_id="E1")
        result = subject_reports(builder).self_assessment_status(TENANT, SURVEY, "sub-1")
        assert result.status == expected

    def test_self_assessment_without_submission_is_pending(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.rater("sub-1", "self")
        result = subject_reports(builder).self_assessment_status(TENANT, SURVEY, "sub-1")
        assert result.status == "Pending"

    def test_self_assessment_not_assigned(self, single_rating_builder):
        builder = single_rating_builder
        builder.subject("sub-1")
        builder.rater("sub-1", "Peer", {"q1": 3})
        result = subject_reports(builder).self_assessment_status(TENANT, SURVEY, "sub-1")
        assert result.status == "Not Assigned"

    def test_self_assessment_not_found(self, single_rating_builder):
        result = subject_reports(single_rating_builder).self_assessment_status(TENANT, SURVEY, "nobody")
        assert result.status == "Not Found"
        assert result.subject_id == "nobody"


class TestRaterGroupReports:
    """Tests for rater groups, agreement chart and open-ended feedback."""

    @pytest.fixture
    def builder(self, full_builder):
        builder = full_builder
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Self", {"q1": 5, "c1": "I try hard"}, employee_id="E1")
        builder.rater("sub-1", "Manager", {"q1": 4, "c1": "Solid year"})
        builder.rater("sub-1", "Peer", {"q1": 2, "c1": "More feedback please"})
        builder.rater("sub-1", "Peer", {"q1": 2.5})
        builder.rater("sub-1", None, {"q1": 1, "mt1": {"keep": "Mentoring"}})
        return builder

    def test_small_peer_group_hidden(self, builder):
        result = subject_reports(builder).rater_group_summary(TENANT, SURVEY, "sub-1")
        assert result.relationship_types == ["Manager", "Unknown"]
        communication = result.competency_items[0]
        assert communication.competency_name == "Communication"
        assert communication.self_score == 5.0
        # (4 + 2 + 2.5 + 1) / 4
        assert communication.others_score == 2.38
        assert communication.relationship_scores == {"Manager": 4.0, "Unknown": 1.0}

    def test_agreement_chart(self, builder):
        result = subject_reports(builder).agreement_chart(TENANT, SURVEY, "sub-1")
        communication = result.competency_items[0]
        assert communication.competency_name == "Communication"
        assert communication.score_distribution == {1: 1, 2: 1, 3: 1, 4: 1, 5: 0}

    def test_open_ended_feedback(self, builder):
        result = subject_reports(builder).open_ended_feedback(TENANT, SURVEY, "sub-1")
        assert [(i.question_id, i.response_text, i.rater_type) for i in result.items] == [
            ("mt1:keep", "Mentoring", "Anonymous"),
            ("c1", "Solid year", "Manager"),
            ("c1", "More feedback please", "Peer"),
        ]
        assert result.items[0].question_text == "Keep doing"


class TestErrorBoundary:
    """Assemblers log unexpected errors and return the empty shape."""

    def test_store_failure(self, caplog):
        class BrokenStore(InMemoryReportStore):
            def get_survey(self, tenant_id, survey_id):
                raise RuntimeError("database down")

        reports = SurveyReportAssembler(BrokenStore())
        with caplog.at_level("ERROR"):
            assert reports.subject_heat_map(TENANT, SURVEY) == []
        assert "database down" in caplog.text

        subject = SubjectReportAssembler(BrokenStore())
        assert subject.latent_strengths_blindspots(TENANT, SURVEY, "sub-1").blindspots == []
