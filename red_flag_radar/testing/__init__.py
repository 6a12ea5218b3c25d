from red_flag_radar.testing.scripted_provider import ScriptedProvider

__all__ = ["ScriptedProvider"]
