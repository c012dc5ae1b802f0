# Provider SDKs (google-genai) are imported lazily inside services.providers;
# import specific services where needed:
# from services.activity_image_pipeline import ActivityImagePipeline
# from services.providers import get_provider

__all__ = []
