import pytest
from loguru import logger

from bmt_factory import csc_bytes, csr_bytes, dense_bytes, A_DE_COL, A_DE_ROW


@pytest.fixture
def write_bmt(tmp_path):
    """Write raw bytes to a .bmt file under tmp_path and return its path."""

    def _write(data: bytes, name: str = "matrix.bmt") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)

    return _write


@pytest.fixture
def dense_col_file(write_bmt):
    return write_bmt(dense_bytes(A_DE_COL, 5, 3, kind=0), "A_de_col.bmt")


@pytest.fixture
def dense_row_file(write_bmt):
    return write_bmt(dense_bytes(A_DE_ROW, 5, 3, kind=1), "A_de_row.bmt")


@pytest.fixture
def csc_file(write_bmt):
    return write_bmt(csc_bytes(), "A_sp_csc.bmt")


@pytest.fixture
def csr_file(write_bmt):
    return write_bmt(csr_bytes(), "A_sp_csr.bmt")


@pytest.fixture(autouse=True)
def _reset_logging():
    # The CLI installs a stderr sink bound to pytest's capture stream.
    yield
    logger.remove()
