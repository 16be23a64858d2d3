"""Test suite for the operations module."""

TEST_MODULES = [
    "test_detection",
    "test_duplicates",
    "test_importer",
    "test_exporter",
    "test_results",
]

TEST_CATEGORIES = {
    "unit": [
        "test_detection",
        "test_duplicates",
        "test_results",
    ],
    "integration": [
        "test_importer",
        "test_exporter",
    ],
}
