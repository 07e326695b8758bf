import pytest


@pytest.fixture(name="project_dir")
def project_dir_fixture(tmp_path) -> str:
    return str(tmp_path)
