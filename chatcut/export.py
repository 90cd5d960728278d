"""
Video export functionality for ChatCut.
"""

from typing import Iterable, Optional

from moviepy import VideoFileClip, concatenate_videoclips

from .errors import ExportError
from .models import Segment
from .utils.logging_utils import DualLogger, get_log_helper


class VideoExporter:
    """Renders kept segments of the source video to a new file."""

    def __init__(self, logger: Optional[DualLogger] = None, verbose: bool = False):
        self.log = get_log_helper(logger, verbose)

    def export_video(self, source_path: str, segments: Iterable[Segment], output_path: str) -> str:
        """
        Export the edited video.

        Active segments are cut from the source independently, in start
        order, and joined back to back.

        Args:
            source_path: Path to the source video
            segments: Current timeline
            output_path: Path to save output video

        Returns:
            output_path

        Raises:
            ExportError: No segment is active, or MoviePy failed
        """
        kept = sorted((s for s in segments if s.active and s.end > s.start), key=lambda s: s.start)
        if not kept:
            raise ExportError("Nothing to export: every segment is cut")

        self.log.info(f"[EXPORT] Rendering {len(kept)} segment(s) to {output_path}")
        video_clip = None
        clips = []
        final_clip = None
        try:
            video_clip = VideoFileClip(source_path)
            for seg in kept:
                end = min(seg.end, video_clip.duration)
                clips.append(video_clip.subclipped(seg.start, end))

            final_clip = concatenate_videoclips(clips)
            final_clip.write_videofile(
                output_path,
                codec='libx264',
                audio_codec='aac',
                logger=None
            )
        except Exception as e:
            self.log.error(f"[EXPORT] Failed: {e}")
            raise ExportError(str(e), cause=e)
        finally:
            if final_clip is not None:
                final_clip.close()
            for clip in clips:
                clip.close()
            if video_clip is not None:
                video_clip.close()

        self.log.info(f"[EXPORT] Video exported to: {output_path}")
        return output_path
