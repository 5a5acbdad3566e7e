"""
Pipeline orchestration for deadline computation
"""

from .main_pipeline import DeadlinePipeline, PipelineConfig, ProcessingResult

__all__ = [
    'DeadlinePipeline',
    'PipelineConfig',
    'ProcessingResult'
]
