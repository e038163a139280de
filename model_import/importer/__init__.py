"""Model import pipeline: grouping, splitting, selection, packing and serialization.

The pipeline runs in two stages (import_model.prepare_import and
import_model.finish_import) with split extraction jobs drained between
them by model_importer.ModelImporter.
"""
