"""Mini README: End-to-end export of E57 files written to a temporary directory.

Structure:
    * 8-bit colour scan with a pose - marker, positions and colours.
    * 16-bit colour scan - colour limits of 0..65535 written through libE57.
    * multi-batch read - batch size smaller than the scan.
"""

from __future__ import annotations

import uuid

import numpy as np
import pye57
from pye57 import libe57

from e57_loader.export import PointCloudExporter
from e57_loader.source.pye57_reader import E57Source

XYZ = ("cartesianX", "cartesianY", "cartesianZ")
COLORS = ("colorRed", "colorGreen", "colorBlue")


def _xyz(count):
    return {
        "cartesianX": np.arange(count, dtype=np.float64),
        "cartesianY": np.arange(count, dtype=np.float64) * 2,
        "cartesianZ": -np.arange(count, dtype=np.float64),
    }


def _write_color16_scan(path, data):
    e57 = pye57.E57(str(path), mode="w")
    imf = e57.image_file
    count = len(data["cartesianX"])

    scan = libe57.StructureNode(imf)
    scan.set("guid", libe57.StringNode(imf, "{%s}" % uuid.uuid4()))
    scan.set("name", libe57.StringNode(imf, "sixteen bit"))
    limits = libe57.StructureNode(imf)
    for colour in ("Red", "Green", "Blue"):
        limits.set(f"color{colour}Minimum", libe57.IntegerNode(imf, 0))
        limits.set(f"color{colour}Maximum", libe57.IntegerNode(imf, 65535))
    scan.set("colorLimits", limits)

    prototype = libe57.StructureNode(imf)
    for field in XYZ:
        prototype.set(field, libe57.FloatNode(imf, 0.0))
    for field in COLORS:
        prototype.set(field, libe57.IntegerNode(imf, 0, 0, 65535))
    points = libe57.CompressedVectorNode(imf, prototype, libe57.VectorNode(imf, True))
    scan.set("points", points)
    e57.data3d.append(scan)

    arrays = {field: np.ascontiguousarray(data[field], dtype=np.float64) for field in XYZ}
    arrays.update({field: np.ascontiguousarray(data[field], dtype=np.uint16) for field in COLORS})
    buffers = libe57.VectorSourceDestBuffer()
    for field in XYZ + COLORS:
        buffers.append(libe57.SourceDestBuffer(imf, field, arrays[field], count, True, True))
    writer = points.writer(buffers)
    writer.write(count)
    writer.close()
    e57.close()


def _chunks(sink):
    return [batch for batch in sink.batches if "/chunk_" in batch.entity_path]


def test_export_8bit_colour_scan_with_pose(tmp_path, sink):
    path = tmp_path / "scan.e57"
    data = _xyz(4)
    data["colorRed"] = np.array([0, 255, 128, 0], dtype=np.uint8)
    data["colorGreen"] = np.array([255, 0, 0, 0], dtype=np.uint8)
    data["colorBlue"] = np.array([0, 255, 0, 255], dtype=np.uint8)
    e57 = pye57.E57(str(path), mode="w")
    e57.write_scan_raw(
        data,
        name="north",
        rotation=np.array([1.0, 0.0, 0.0, 0.0]),
        translation=np.array([1.0, 2.0, 3.0]),
    )
    e57.close()

    with E57Source.open(path) as source:
        scans = source.scans()
        assert len(scans) == 1
        assert scans[0].record_count == 4
        assert scans[0].transform.translation == (1.0, 2.0, 3.0)
        summary = PointCloudExporter(sink).export(source)

    assert sink.paths == ["e57_pointcloud/scan_0/point", "e57_pointcloud/scan_0/chunk_0"]
    marker = sink.batches[0]
    assert marker.positions.tolist() == [[1.0, 2.0, 3.0]]
    assert marker.labels == ["Scan 0"]
    chunk = sink.batches[1]
    assert chunk.positions.tolist() == [[0.0, 0.0, 0.0], [1.0, 2.0, -1.0], [2.0, 4.0, -2.0], [3.0, 6.0, -3.0]]
    assert chunk.colors.tolist() == [[0, 255, 0], [255, 0, 255], [128, 0, 0], [0, 0, 255]]
    assert summary.points == 4
    assert summary.skipped_records == 0


def test_export_16bit_colour_scan(tmp_path, sink):
    path = tmp_path / "colour16.e57"
    data = _xyz(5)
    data["colorRed"] = np.array([65535, 0, 25700, 65535, 0])
    data["colorGreen"] = np.array([0, 65535, 25700, 65535, 0])
    data["colorBlue"] = np.array([0, 0, 25700, 65535, 65535])
    _write_color16_scan(path, data)

    with E57Source.open(path) as source:
        summary = PointCloudExporter(sink).export(source)

    assert summary.points == 5
    assert summary.skipped_records == 0
    chunks = _chunks(sink)
    assert [batch.entity_path for batch in chunks] == ["e57_pointcloud/scan_0/chunk_0"]
    assert chunks[0].positions[:, 0].tolist() == [0.0, 1.0, 2.0, 3.0, 4.0]
    assert chunks[0].colors.tolist() == [
        [255, 0, 0],
        [0, 255, 0],
        [100, 100, 100],
        [255, 255, 255],
        [0, 0, 255],
    ]


def test_export_reads_scan_in_several_batches(tmp_path, sink):
    path = tmp_path / "batches.e57"
    e57 = pye57.E57(str(path), mode="w")
    e57.write_scan_raw(_xyz(7))
    e57.close()

    with E57Source.open(path, read_batch_size=3) as source:
        summary = PointCloudExporter(sink, chunk_size=4).export(source)

    chunks = _chunks(sink)
    assert [batch.entity_path for batch in chunks] == [
        "e57_pointcloud/scan_0/chunk_0",
        "e57_pointcloud/scan_0/chunk_1",
    ]
    assert [len(batch.positions) for batch in chunks] == [4, 3]
    positions = np.concatenate([batch.positions for batch in chunks])
    assert positions[:, 0].tolist() == [float(i) for i in range(7)]
    assert np.all(np.concatenate([batch.colors for batch in chunks]) == 255)
    assert summary.points == 7
