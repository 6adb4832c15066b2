from inkwell.voice.loader import VoiceTemplate, load_template, load_voice_templates

__all__ = ["VoiceTemplate", "load_template", "load_voice_templates"]
