"""Shared test fixtures for bucketfs."""

TEST_BUCKET = "test-bucket"
TEST_PARENT_FOLDER = "root"
TEST_PROJECT = "test-project"
