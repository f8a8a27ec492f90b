import os

import grpc
import pytest

from pdf_analyzer.config import AnalyzerConfig
from pdf_analyzer.grpc.protos import pb2_grpc
from pdf_analyzer.server import create_server


@pytest.fixture(scope="session")
def channel():
    # Point at a running server with PDF_ANALYZER_HOST; otherwise start one in-process
    host = os.environ.get("PDF_ANALYZER_HOST")
    server = None
    if host is None:
        config = AnalyzerConfig()
        server, _ = create_server(config)
        port = server.add_insecure_port("localhost:0")
        server.start()
        host = f"localhost:{port}"

    channel = grpc.insecure_channel(
        host,
        options=[
            ("grpc.max_send_message_length", 50 * 1024 * 1024),
            ("grpc.max_receive_message_length", 50 * 1024 * 1024),
        ],
    )
    # Wait for channel to be ready
    grpc.channel_ready_future(channel).result(timeout=30)
    yield channel

    channel.close()
    if server is not None:
        server.stop(grace=None)


@pytest.fixture(scope="session")
def stub(channel):
    return pb2_grpc.PdfAnalyzerStub(channel)
