"""
WebAI Proxy - façade Ollama / OpenAI devant un backend d'inférence `/prompt`.
"""

__version__ = "1.0.0"
