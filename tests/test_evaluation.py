"""
Unit tests for ground truth loading, metrics and the evaluator.
"""

import json

import pytest

from cert_extraction.evaluation import Evaluator, GroundTruthLoader, MetricsCalculator
from cert_extraction.extraction.extraction_result import ExtractionResult
from cert_extraction.utils.exceptions import ConfigurationError, InputNotFoundError

REQUIRED = ['title', 'institution', 'recipient', 'date_issued']

GROUND_TRUTH = [
    {
        "source_file": "certs/cert_01.txt",
        "title": "Data Science",
        "institution": "Coursera",
        "recipient": "John Smith",
        "date_issued": "2023-06-19",
    },
    {
        "filename": "cert_02.txt",
        "title": "  ",
        "recipient": "Jane Doe",
        "grade": "A",
    },
]


@pytest.fixture
def gt_json(tmp_path):
    path = tmp_path / "ground_truth.json"
    path.write_text(json.dumps(GROUND_TRUTH), encoding="utf-8")
    return path


@pytest.fixture
def predictions():
    return [
        {'title': "Data Science", 'institution': "Coursera", 'recipient': "John Smith",
         'date_issued': "2023-06-19", 'confidence': 0.9, 'requires_review': False},
        {'title': "Python", 'institution': None, 'recipient': "Jane Doe",
         'date_issued': None, 'confidence': 0.5, 'requires_review': True},
        {'title': "Cloud", 'institution': "Google", 'recipient': "Bob Ray",
         'date_issued': "2021-01-01", 'confidence': 0.8, 'requires_review': False},
    ]


@pytest.fixture
def labels():
    return [
        {'title': "Data Science", 'institution': "Coursera", 'recipient': "John Smith",
         'date_issued': "2023-06-19"},
        {'title': "Python for Everybody", 'institution': "University of Michigan",
         'recipient': "Jane Doe", 'date_issued': "2022-01-05"},
        {'title': "Cloud Computing", 'institution': "Google", 'recipient': "Alice Wong",
         'date_issued': "2021-01-01"},
    ]


class TestGroundTruthLoader:
    """Test loading labelled records."""

    def test_json_list(self, gt_json):
        loader = GroundTruthLoader(gt_json)
        assert len(loader) == 2
        assert loader.get_by_filename("cert_01.txt")['recipient'] == "John Smith"
        assert loader.get_by_filename("/elsewhere/cert_01.txt")['title'] == "Data Science"
        assert loader.get_by_filename("missing.txt") is None
        assert loader.get_by_filename(None) is None

    def test_blank_values_and_filename_alias(self, gt_json):
        record = GroundTruthLoader(gt_json).get_by_filename("cert_02.txt")
        assert record['title'] is None
        assert record['source_file'] == "cert_02.txt"

    def test_validate(self, gt_json):
        report = GroundTruthLoader(gt_json).validate()
        assert report['valid_records'] == 1
        assert report['invalid_records'] == 1
        assert report['missing_fields'] == {'title': 1, 'institution': 1, 'date_issued': 1}
        assert report['unknown_fields'] == ['grade']

    def test_json_keyed_by_file(self, tmp_path):
        path = tmp_path / "gt.json"
        path.write_text(json.dumps({"a.txt": {"title": "X"}}), encoding="utf-8")
        assert GroundTruthLoader(path).get_by_filename("a.txt") == {"title": "X", "source_file": "a.txt"}

    def test_json_records_wrapper(self, tmp_path):
        path = tmp_path / "gt.json"
        path.write_text(json.dumps({"records": GROUND_TRUTH}), encoding="utf-8")
        assert len(GroundTruthLoader(path)) == 2

    def test_csv(self, tmp_path):
        path = tmp_path / "gt.csv"
        path.write_text(
            "source_file,title,institution,recipient,date_issued\n"
            "cert_01.txt,Data Science,Coursera,John Smith,2023-06-19\n"
            "cert_02.txt,Python Basics,,Jane Doe,\n",
            encoding="utf-8",
        )
        loader = GroundTruthLoader(path)
        assert loader[1]['institution'] is None
        assert [r['source_file'] for r in loader] == ["cert_01.txt", "cert_02.txt"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputNotFoundError):
            GroundTruthLoader(tmp_path / "nope.json")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "gt.xlsx"
        path.write_bytes(b"")
        with pytest.raises(ConfigurationError):
            GroundTruthLoader(path)

    def test_json_must_hold_records(self, tmp_path):
        path = tmp_path / "gt.json"
        path.write_text("42", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            GroundTruthLoader(path)

    def test_empty_loader(self):
        assert GroundTruthLoader().get_all() == []


class TestMetricsCalculator:
    """Test field comparison and aggregate metrics."""

    def setup_method(self):
        self.calculator = MetricsCalculator(fields=REQUIRED)

    @pytest.mark.parametrize("predicted, truth, field, expected", [
        ("Data Science", "data science", 'title', (True, True)),
        ("Data Science", "Data Science Specialization", 'title', (False, True)),
        ("John Smith", "Jane Doe", 'recipient', (False, False)),
        ("June 19, 2023", "2023-06-19", 'date_issued', (True, True)),
        ("2023-06-18", "2023-06-19", 'date_issued', (False, False)),
        ("UC-1234-ABCD", "uc1234abcd", 'certificate_id', (True, True)),
        ("", "Coursera", 'institution', (False, False)),
        ("Coursera", "", 'institution', (False, False)),
    ])
    def test_compare_values(self, predicted, truth, field, expected):
        assert self.calculator.compare_values(predicted, truth, field) == expected

    def test_case_sensitive(self):
        calculator = MetricsCalculator(case_sensitive=True)
        assert calculator.compare_values("Data Science", "data science", 'title')[0] is False

    def test_similarity(self):
        assert MetricsCalculator.similarity("data science", "data science specialization") == 1.0
        assert MetricsCalculator.similarity("", "anything") == 0.0

    def test_field_metrics(self, predictions, labels):
        result = self.calculator.evaluate(predictions, labels)
        title = result.field_metrics['title']
        assert title.labelled_count == 3
        assert title.accuracy == pytest.approx(1 / 3)
        assert title.partial_accuracy == pytest.approx(1.0)
        assert result.field_metrics['recipient'].accuracy == pytest.approx(2 / 3)
        assert result.field_metrics['institution'].missing_count == 1
        assert result.overall_accuracy == pytest.approx(7 / 12)
        assert result.overall_extraction_rate == pytest.approx(5 / 6)
        assert result.avg_confidence == pytest.approx(2.2 / 3)
        assert result.total_samples == 3

    def test_review_metrics(self, predictions, labels):
        """Test flagged/unflagged counts against wrong samples."""
        review = self.calculator.evaluate(predictions, labels).review_metrics
        assert review.flagged_count == 1
        assert review.flagged_wrong_count == 1
        assert review.unflagged_count == 2
        assert review.unflagged_wrong_count == 1
        assert review.review_rate == pytest.approx(1 / 3)
        assert review.error_recall == pytest.approx(0.5)
        assert review.auto_approve_precision == pytest.approx(0.5)

    def test_length_mismatch(self, predictions, labels):
        with pytest.raises(ValueError):
            self.calculator.evaluate(predictions, labels[:2])

    def test_no_samples(self):
        assert self.calculator.evaluate([], []).total_samples == 0

    def test_evaluate_single(self, predictions, labels):
        single = self.calculator.evaluate_single(predictions[1], labels[1])
        assert single['institution'] == {
            'predicted': None,
            'ground_truth': "University of Michigan",
            'exact_match': False,
            'partial_match': False,
            'extracted': False,
        }
        assert single['recipient']['exact_match'] is True


class TestEvaluator:
    """Test matching results to ground truth and reporting."""

    def test_matches_by_source_file(self, gt_json):
        results = [
            ExtractionResult(
                title="Data Science", institution="Coursera", recipient="John Smith",
                date_issued="2023-06-19", confidence=1.0, requires_review=False,
                source_file="cert_01.txt",
            ),
            ExtractionResult(recipient="Jane Doe", confidence=0.4, source_file="cert_02.txt"),
        ]
        result = Evaluator(gt_json).evaluate(results)
        assert result.field_metrics['recipient'].accuracy == 1.0
        assert result.field_metrics['title'].labelled_count == 1
        assert result.review_metrics.flagged_count == 1
        assert result.review_metrics.flagged_wrong_count == 0

    def test_unknown_source_file_is_unlabelled(self, gt_json):
        result = Evaluator(gt_json).evaluate([{'title': "X", 'source_file': "other.txt"}])
        assert result.field_metrics['title'].labelled_count == 0

    def test_explicit_ground_truth(self, predictions, labels):
        assert Evaluator().evaluate(predictions, labels).total_samples == 3

    def test_requires_ground_truth(self, predictions):
        with pytest.raises(ValueError):
            Evaluator().evaluate(predictions)

    def test_evaluate_single_by_source_file(self, gt_json):
        single = Evaluator(gt_json).evaluate_single({'recipient': "John Smith", 'source_file': "cert_01.txt"})
        assert single['recipient']['exact_match'] is True
        assert single['title']['extracted'] is False

    def test_reports(self, tmp_path, predictions, labels):
        evaluator = Evaluator()
        result = evaluator.evaluate(predictions, labels)
        assert "CERTIFICATE EXTRACTION EVALUATION REPORT" in evaluator.generate_report(result)
        data = json.loads(evaluator.generate_report(result, format='json'))
        assert data['review']['flagged_count'] == 1

        output = tmp_path / "reports" / "eval.txt"
        assert evaluator.generate_report(result, output_path=output) == str(output)
        assert "REVIEW ROUTING" in output.read_text(encoding="utf-8")

        with pytest.raises(ValueError):
            evaluator.generate_report(result, format='pdf')
