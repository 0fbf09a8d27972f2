"""Exporters for delivering spans to backends."""

from tracehop.exporter.console_exporter import ConsoleExporter
from tracehop.exporter.otlp_exporter import OTLPExporter

__all__ = ["ConsoleExporter", "OTLPExporter"]
