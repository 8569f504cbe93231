"""
Food photo calorie estimator:
- image_preprocess: upload validation, bounded resize, JPEG re-encode
- readiness: bounded wait for the Gemini credential
- gemini_client: single generateContent call
- result_parser: model text → AnalysisResult (fallback on bad output)
- services: session-scoped analysis orchestration
- presentation / main: user-facing rendering and the FastAPI app
"""
