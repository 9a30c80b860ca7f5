from __future__ import annotations

AUDIO_EXTENSIONS = frozenset(
    {
        ".3gp", ".669", ".aa", ".aac", ".aax", ".ac3", ".act", ".adp", ".adplug",
        ".adx", ".afc", ".aif", ".aiff", ".alac", ".amf", ".amr", ".ape", ".ast",
        ".au", ".awb", ".cda", ".cue", ".dmf", ".dsf", ".dsm", ".dsp", ".dts",
        ".dvf", ".eac3", ".ec3", ".far", ".flac", ".gdm", ".gsm", ".gym", ".hps",
        ".imf", ".it", ".m15", ".m4a", ".m4b", ".mac", ".med", ".mka", ".mmf",
        ".mod", ".mogg", ".mp+", ".mp2", ".mp3", ".mpa", ".mpc", ".mpp", ".msv",
        ".nmf", ".nsf", ".nsv", ".oga", ".ogg", ".okt", ".opus", ".pls", ".ra",
        ".rf64", ".rm", ".s3m", ".sfx", ".shn", ".sid", ".stm", ".strm", ".ult",
        ".uni", ".vox", ".wav", ".wma", ".wv", ".xm", ".xsp", ".ymf",
    }
)

IMAGE_EXTENSIONS = frozenset(
    {
        ".avif", ".bmp", ".exr", ".gif", ".hdr", ".heic", ".heif", ".j2k", ".jfif",
        ".jif", ".jp2", ".jpc", ".jpe", ".jpeg", ".jpf", ".jpg", ".jpx", ".jxl",
        ".pbm", ".pfm", ".pgm", ".pic", ".png", ".pnm", ".ppm", ".raw", ".tif",
        ".tiff", ".webp",
    }
)

VIDEO_EXTENSIONS = frozenset(
    {
        ".264", ".265", ".3g2", ".3gp", ".amv", ".asf", ".avi", ".divx", ".dvr-ms",
        ".f4v", ".flv", ".gxf", ".h264", ".h265", ".hevc", ".img", ".ismv", ".iso",
        ".ivf", ".m1v", ".m2t", ".m2ts", ".m2v", ".m4v", ".mjpeg", ".mjpg", ".mk3d",
        ".mkv", ".mov", ".mp4", ".mpeg", ".mpg", ".mts", ".mxf", ".nut", ".nuv",
        ".ogg", ".ogm", ".ogv", ".ogx", ".ps", ".rec", ".rm", ".rmvb", ".ts", ".vdr",
        ".vob", ".vro", ".webm", ".wmv", ".wtv", ".y4m",
    }
)


def _normalize(extension: str) -> str:
    extension = (extension or "").strip().lower()
    if not extension:
        return ""
    return extension if extension.startswith(".") else f".{extension}"


def is_audio(extension: str) -> bool:
    return _normalize(extension) in AUDIO_EXTENSIONS


def is_image(extension: str) -> bool:
    return _normalize(extension) in IMAGE_EXTENSIONS


def is_video(extension: str) -> bool:
    return _normalize(extension) in VIDEO_EXTENSIONS
