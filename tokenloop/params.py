#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Session parameters: defaults, command line and YAML parameter files."""

import argparse
import random
import time
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

from .session import INSTRUCT_ANTIPROMPT

RANDOM_PROMPTS = [
    "So",
    "Once upon a time",
    "When",
    "The",
    "After",
    "If",
    "import",
    "He",
    "She",
    "They",
]


@dataclass
class GptParams:
    seed: int = -1
    n_threads: int = 4
    n_predict: int = 128
    repeat_last_n: int = 64
    n_ctx: int = 512
    n_batch: int = 8

    # sampling
    top_k: int = 40
    top_p: float = 0.95
    temp: float = 0.80
    repeat_penalty: float = 1.30

    model: str = "models/llama-7B"
    device: str = "cpu"
    prompt: str = ""
    prompt_file: Optional[str] = None
    random_prompt: bool = False
    antiprompt: List[str] = field(default_factory=list)

    interactive: bool = False
    interactive_start: bool = False
    instruct: bool = False
    ignore_eos: bool = False
    logits_all: bool = False

    use_color: bool = False
    verbose_prompt: bool = False
    warmup: bool = True
    show_progress: bool = False

    def validate(self):
        if self.n_batch < 1:
            raise ValueError(f"n_batch must be >= 1, got {self.n_batch}")
        if self.repeat_last_n < 0:
            raise ValueError(f"repeat_last_n must be >= 0, got {self.repeat_last_n}")
        if self.n_ctx < 1:
            raise ValueError(f"n_ctx must be >= 1, got {self.n_ctx}")
        if self.ignore_eos and self.logits_all:
            raise ValueError("ignore_eos cannot be combined with logits_all")

    def finalize(self, rng=None):
        """Resolve the seed and prompt and apply the mode implications."""
        self.validate()
        if self.seed <= 0:
            self.seed = int(time.time())
        if rng is None:
            rng = random.Random(self.seed)

        if self.prompt_file:
            self.prompt = Path(self.prompt_file).read_text()
        if self.random_prompt:
            self.prompt = rng.choice(RANDOM_PROMPTS)
        # SentencePiece vocabularies expect a leading space
        self.prompt = " " + self.prompt

        # instruct implies interactive and stops before each new instruction
        if self.instruct:
            self.interactive = True
            if INSTRUCT_ANTIPROMPT not in self.antiprompt:
                self.antiprompt.append(INSTRUCT_ANTIPROMPT)
        if self.antiprompt:
            self.interactive = True
        if self.interactive_start:
            self.interactive = True
        return self


_FIELD_NAMES = {f.name for f in fields(GptParams)}


def load_yaml_params(path):
    """Read a YAML mapping of parameter overrides."""
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of parameters, got {type(data).__name__}")
    # accept the same nesting as meta.yaml files
    if "parameters" in data and isinstance(data["parameters"], dict):
        data = data["parameters"]
    unknown = sorted(set(data) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"{path}: unknown parameters: {', '.join(unknown)}")
    if isinstance(data.get("antiprompt"), str):
        data["antiprompt"] = [data["antiprompt"]]
    return data


def build_parser():
    parser = argparse.ArgumentParser(description="Interactive text generation loop")

    parser.add_argument("--config", type=str, help="YAML file with parameter defaults")

    parser.add_argument("-m", "--model", type=str, help="Model directory or Hugging Face id")
    parser.add_argument("--device", type=str, help="Torch device (default: cpu)")
    parser.add_argument("-s", "--seed", type=int, help="RNG seed (default: -1, use current time)")
    parser.add_argument("-t", "--threads", dest="n_threads", type=int, help="Number of threads")

    parser.add_argument("-p", "--prompt", type=str, help="Prompt to start generation with")
    parser.add_argument("-f", "--file", dest="prompt_file", type=str, help="Read the prompt from a file")
    parser.add_argument("--random-prompt", action="store_true", default=None,
                        help="Start with a randomized prompt")

    parser.add_argument("-i", "--interactive", action="store_true", default=None,
                        help="Run in interactive mode")
    parser.add_argument("--interactive-first", dest="interactive_start", action="store_true", default=None,
                        help="Run in interactive mode and wait for input right away")
    parser.add_argument("-ins", "--instruct", action="store_true", default=None,
                        help="Run in instruction mode (use with Alpaca-style models)")
    parser.add_argument("-r", "--reverse-prompt", dest="antiprompt", action="append",
                        help="Pause generation and wait for input when this text is generated; "
                             "can be given more than once")
    parser.add_argument("--color", dest="use_color", action="store_true", default=None,
                        help="Colorise output to distinguish prompt and user input from generations")

    parser.add_argument("-n", "--n-predict", dest="n_predict", type=int, help="Number of tokens to predict")
    parser.add_argument("--top-k", dest="top_k", type=int)
    parser.add_argument("--top-p", dest="top_p", type=float)
    parser.add_argument("--temp", type=float)
    parser.add_argument("--repeat-last-n", dest="repeat_last_n", type=int,
                        help="Last n tokens to consider for the repetition penalty")
    parser.add_argument("--repeat-penalty", dest="repeat_penalty", type=float)
    parser.add_argument("-c", "--ctx-size", dest="n_ctx", type=int, help="Size of the prompt context")
    parser.add_argument("-b", "--batch-size", dest="n_batch", type=int, help="Batch size for prompt processing")
    parser.add_argument("--ignore-eos", dest="ignore_eos", action="store_true", default=None,
                        help="Ignore end of stream token and continue generating")

    parser.add_argument("--verbose-prompt", dest="verbose_prompt", action="store_true", default=None,
                        help="Print the prompt tokens before generation")
    parser.add_argument("--no-warmup", dest="warmup", action="store_false", default=None,
                        help="Skip the warmup evaluation")
    parser.add_argument("--progress", dest="show_progress", action="store_true", default=None,
                        help="Show a progress bar while the prompt is ingested")
    return parser


def parse_args(argv=None):
    """Build ``GptParams`` from YAML defaults overridden by command line flags."""
    args = build_parser().parse_args(argv)

    values = {}
    if args.config:
        values.update(load_yaml_params(args.config))
    for name, value in vars(args).items():
        if name == "config" or value is None:
            continue
        values[name] = value

    params = GptParams(**values)
    return params.finalize()
