from __future__ import annotations

import argparse
import sys
from typing import Any, Callable
from pathlib import Path

from .env import load_dotenv_if_present
from .config import SubStudioConfig
from .drafts import get_draft_store
from .editor import SubtitleEditor
from .playback import Player, Scheduler, TimerHandle


class _OfflinePlayer(Player):
    """命令行导出不涉及播放，只需满足播放器接口。"""

    current_position = 0.0
    is_playing = False

    def seek(self, position: float) -> None:
        self.current_position = position

    def pause(self) -> None:
        pass

    def set_rate(self, rate: float) -> None:
        pass


class _NoTimerScheduler(Scheduler):
    def now(self) -> float:
        return 0.0

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        raise RuntimeError("命令行模式不支持定时任务")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="substudio",
        description="substudio: 将字幕文件与已保存的翻译草稿合并，导出译文 SRT。",
    )
    parser.add_argument(
        "input",
        type=str,
        help="输入 SRT 字幕文件路径。",
    )
    parser.add_argument(
        "--drafts",
        type=str,
        default=None,
        help="草稿 JSON 文件路径（默认: 与输入同目录，文件名加 .drafts.json 后缀，可通过 SUBSTUDIO_DRAFT_PATH 配置）。",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="输出 SRT 文件路径（默认: 与输入同目录，文件名加 .translated 后缀）。",
    )
    parser.add_argument(
        "--bilingual",
        action="store_true",
        help="输出双语字幕（原文 + 译文）。",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="仅统计翻译进度，不写出文件。",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    # 确保在解析参数和使用配置之前加载 .env 中的环境变量
    load_dotenv_if_present()
    if argv is None:
        argv = sys.argv[1:]

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    input_path = Path(args.input).expanduser().resolve()

    try:
        config = SubStudioConfig.from_env(
            draft_store="json",
            draft_path=args.drafts,
            bilingual_export=True if args.bilingual else None,
        )
        draft_path = config.draft_path or input_path.with_name(input_path.stem + ".drafts.json")
        store = get_draft_store("json", draft_path)
        editor = SubtitleEditor(config, _OfflinePlayer(), _NoTimerScheduler(), store=store)
        session = editor.load_file(input_path)
        done, total = session.progress()

        if args.stats:
            print("翻译进度")
            print(f"   输入: {input_path}")
            print(f"   草稿: {draft_path}")
            print(f"   已翻译: {done} / {total}")
            return 0

        output_path = args.output or input_path.with_name(input_path.stem + ".translated.srt")
        written = editor.write(output_path)
        print("字幕导出完成")
        print(f"   输入: {input_path}")
        print(f"   草稿: {draft_path}")
        print(f"   输出: {written}")
        print(f"   条目数: {total}（已翻译 {done}）")
        return 0
    except KeyboardInterrupt:
        print("\n用户中断")
        return 1
    except Exception as exc:
        print(f"处理失败: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
