"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_records():
    """Sample corpus of document-to-word-list records"""
    return [
        "doc6:of,crazy,fox,jumped,fox,ran",
        "doc6:fox,ran,fast,over,fence,too,high",
        "doc1:fox,jumped",
        "doc1:fox,jumped,over,the,fence",
        "doc1:of,crazy,fox,jumped,fox,ran",
        "doc1:fox,ran,fast,over,fence,too,high",
        "doc2:a,crazy,fox,jumped",
        "doc2:a,crazy,fox,jumped,over,the,fence,again",
        "doc3:fox,ran,fast,over,fence",
        "doc1:fox,is,high,on,sugar",
        "doc2:a,crazy,fox,ran,ran,ran,fast",
        "doc3:a,crazy,fox,jumped,jumped,jumped,jumped",
        "doc4:a,crazy,fox,ran,jumped,ran,jumped",
        "doc4:a,crazy,fox,jumped,jumped",
        "doc4:a,crazy,fox,jumped,jumped",
        "doc5:a,crazy,fox,jumped,over,fence,very,high",
        "doc5:a,crazy,fox,jumped,over,the,fence,again",
        "doc6:book,reading,about,fox,and,fence",
        "doc1:crazy,fox,jumped",
    ]


@pytest.fixture
def sample_input_file(temp_dir, sample_records):
    """Write the sample corpus to an input file"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write('\n'.join(sample_records) + '\n')
    return filepath


@pytest.fixture
def example_records():
    """Three-record corpus used for the N=3 worked example"""
    return [
        "doc1:fox,jumped",
        "doc1:fox,jumped,over,the,fence",
        "doc2:a,crazy,fox,jumped",
    ]


@pytest.fixture
def write_job_file(temp_dir):
    """Return a helper that writes a throwaway job module and returns its path"""
    def _write(name, source):
        path = os.path.join(temp_dir, name)
        with open(path, 'w') as f:
            f.write(source)
        return path
    return _write
