import pytest

from orgview_samples import sample_sheets_dict, write_default_workbooks


@pytest.fixture
def sample_sheets():
    return sample_sheets_dict()


@pytest.fixture
def workbooks(tmp_path):
    return write_default_workbooks(tmp_path)
