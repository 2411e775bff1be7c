import pytest

from tokenloop.params import RANDOM_PROMPTS, GptParams, load_yaml_params, parse_args
from tokenloop.session import INSTRUCT_ANTIPROMPT


def test_defaults():
    params = parse_args(["-s", "7"])
    assert params.seed == 7
    assert params.prompt == " "
    assert not params.interactive
    assert params.warmup


def test_instruct_implies_interactive_and_antiprompt():
    params = parse_args(["-p", "hello", "-ins", "-s", "42"])
    assert params.prompt == " hello"
    assert params.instruct
    assert params.interactive
    assert params.antiprompt == [INSTRUCT_ANTIPROMPT]


def test_reverse_prompt_implies_interactive():
    params = parse_args(["-r", "User:", "-r", "Bob:"])
    assert params.interactive
    assert params.antiprompt == ["User:", "Bob:"]


def test_interactive_first_implies_interactive():
    params = parse_args(["--interactive-first"])
    assert params.interactive_start
    assert params.interactive


def test_seed_from_time_when_not_positive():
    params = GptParams(seed=0).finalize()
    assert params.seed > 0


def test_random_prompt_is_one_of_the_openers():
    params = GptParams(seed=3, random_prompt=True).finalize()
    assert params.prompt[1:] in RANDOM_PROMPTS
    assert params.prompt.startswith(" ")


def test_prompt_file(tmp_path):
    path = tmp_path / "prompt.txt"
    path.write_text("from a file")
    params = parse_args(["-f", str(path), "-s", "1"])
    assert params.prompt == " from a file"


def test_yaml_values_are_overridden_by_flags(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("n_predict: 7\ntemp: 0.5\nantiprompt: 'User:'\nuse_color: true\n")
    params = parse_args(["--config", str(path), "--temp", "0.9", "-s", "1"])
    assert params.n_predict == 7
    assert params.temp == 0.9
    assert params.antiprompt == ["User:"]
    assert params.interactive
    assert params.use_color


def test_yaml_parameters_section(tmp_path):
    path = tmp_path / "meta.yaml"
    path.write_text("parameters:\n  n_batch: 16\n  repeat_last_n: 32\n")
    assert load_yaml_params(path) == {"n_batch": 16, "repeat_last_n": 32}


def test_yaml_unknown_key_rejected(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("n_predict: 7\nnot_a_param: 1\n")
    with pytest.raises(ValueError, match="not_a_param"):
        load_yaml_params(path)


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_yaml_params(path)


def test_no_warmup_flag():
    assert not parse_args(["--no-warmup", "-s", "1"]).warmup


@pytest.mark.parametrize("kwargs", [
    {"n_batch": 0},
    {"repeat_last_n": -1},
    {"n_ctx": 0},
    {"ignore_eos": True, "logits_all": True},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        GptParams(**kwargs).finalize()
