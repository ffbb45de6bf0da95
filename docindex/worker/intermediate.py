"""
Intermediate record encoding and partitioning shared by map and reduce tasks
"""

import json
import zlib


def _restore_tuples(value):
    if isinstance(value, list):
        return tuple(_restore_tuples(item) for item in value)
    return value


def encode_record(key, value) -> str:
    """Serialize one key/value pair as a JSON line (without the newline)"""
    return json.dumps({'key': key, 'value': value}, ensure_ascii=False)


def decode_record(line: str):
    """
    Parse a JSON line written by encode_record

    JSON arrays come back as tuples so composite keys stay hashable.

    Raises:
        json.JSONDecodeError: If the line isn't valid JSON
        KeyError: If the 'key' or 'value' field is missing
    """
    record = json.loads(line)
    return _restore_tuples(record['key']), _restore_tuples(record['value'])


def partition_for(key, num_partitions: int) -> int:
    """
    Pick the reduce partition for a key

    Uses CRC32 of the JSON form of the key, so every task (and every
    process) routes a key to the same partition.
    """
    encoded = json.dumps(key, ensure_ascii=False).encode('utf-8')
    return zlib.crc32(encoded) % num_partitions
