"""Cleaning pipeline for the telco customer export."""

from telco_etl.pipeline import CustomerPipeline, PipelineResult

__all__ = ["CustomerPipeline", "PipelineResult"]
