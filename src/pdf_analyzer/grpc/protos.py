"""Message and service modules for ``analyzer.proto``, compiled on import."""

import grpc

pb2, pb2_grpc = grpc.protos_and_services("pdf_analyzer/protos/analyzer.proto")
