"""Bundled sample working sets, served when neither cache nor remote is available."""

from __future__ import annotations

from wlx.core.models import AudioEntry, DictionaryEntry

SAMPLE_DATASET_VERSION = "sample"

_SAMPLE_PAIRS = [
    ("aa", "sí"),
    ("aainjaa", "hacer"),
    ("aainjaa", "elaborar fabricar"),
    ("aainjaa", "construir"),
    ("aainjala", "acción mala pecado"),
    ("aaint", "donde"),
    ("aainjatü", "estar activo"),
    ("aaipana", "que me place"),
    ("aaipa", "querer desear"),
    ("aakua", "estar"),
    ("aalain", "dentro"),
    ("aalajawaa", "robar"),
    ("aalawaa", "lavar"),
    ("aamaa", "todavía aún"),
    ("aamaka", "también"),
    ("aamüin", "no querer"),
    ("aanain", "arriba"),
    ("aanaka", "después"),
    ("aane", "hacia arriba"),
    ("aantaa", "caminar"),
    ("aapain", "abajo"),
    ("aashajawin", "enseñar"),
    ("aatamaa", "escuchar"),
    ("aatchiki", "cómo está"),
    ("aatchon", "bueno"),
    ("aawataa", "hablar"),
    ("achajawaa", "soñar"),
    ("achakaa", "estar enfermo"),
    ("achekaa", "conocer"),
    ("achiki", "cómo"),
    ("achon", "bueno"),
    ("achuntaa", "pensar"),
    ("eera", "viento"),
    ("eiruku", "alma"),
    ("ekai", "aquí"),
    ("eküülü", "tierra"),
    ("emaa", "agua"),
    ("epeyuu", "lluvia"),
    ("jaarai", "cuándo"),
    ("jaashi", "sol"),
    ("jakaa", "comer"),
    ("jama", "perro"),
    ("jamü", "casa"),
    ("janama", "mujer"),
    ("jashichon", "ayer"),
    ("jashichiree", "mañana"),
    ("jataa", "venir"),
    ("jee", "día"),
    ("jemiai", "qué"),
    ("jintü", "pueblo"),
    ("jiyaa", "corazón"),
    ("jootoo", "dormir"),
    ("jopuu", "flor"),
    ("jukuaipa", "trabajar"),
    ("jümaa", "hijo"),
    ("jütuma", "palabra"),
    ("ka", "y"),
    ("kachon", "oro"),
    ("kakat", "fuego"),
    ("kanülü", "mar"),
    ("kasain", "ahora"),
    ("kashí", "luna"),
    ("kashi", "mes"),
    ("kümaa", "tigre"),
    ("ma", "no"),
    ("majayulü", "estrella"),
    ("maleewa", "amigo"),
    ("maleiwa", "dios"),
    ("miichi", "gato"),
    ("wayuu", "persona indígena"),
]

_SAMPLE_AUDIO = [
    (
        "sample_audio_1",
        "müshia chi wayuu jemeikai nüchikua nütüma chi Naaꞌinkai Maleiwa",
        15.4,
    ),
    ("sample_audio_2", "Nnojoishi nüjütüinshin chi Nüchonkai saꞌakamüin wayuu", 12.8),
    ("sample_audio_3", "tayakai chi Shipayakai Wayuu", 8.2),
]


def sample_dictionary() -> list[DictionaryEntry]:
    return [DictionaryEntry(source_word=guc, target_word=spa) for guc, spa in _SAMPLE_PAIRS]


def sample_audio() -> list[AudioEntry]:
    """Sample audio entries. They have no remote URL and cannot be downloaded."""
    return [
        AudioEntry(id=audio_id, transcription=text, duration_seconds=duration, source_id="sample")
        for audio_id, text, duration in _SAMPLE_AUDIO
    ]
