"""
Module Analyzer
Dependency-graph engine for JavaScript/TypeScript module facts: circular
imports, unused and missing exports, unresolved imports and high coupling
"""

from .config import AnalyzerConfig, ConfigError
from .coupling import CouplingAnalyzer
from .cycle_detector import CycleDetector
from .engine import AnalysisResult, ModuleGraphEngine, analyze_modules
from .export_classifier import ExportClassifier
from .export_usage import ExportUsageAnalyzer
from .graph_builder import DependencyGraphBuilder
from .import_classifier import ImportClassifier
from .models import MalformedModuleError, ModuleRecord
from .resolver import ModuleResolver

__all__ = [
    'AnalysisResult', 'AnalyzerConfig', 'ConfigError', 'CouplingAnalyzer', 'CycleDetector',
    'DependencyGraphBuilder', 'ExportClassifier', 'ExportUsageAnalyzer', 'ImportClassifier',
    'MalformedModuleError', 'ModuleGraphEngine', 'ModuleRecord', 'ModuleResolver', 'analyze_modules',
]
