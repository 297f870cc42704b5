import json

from hdrmerge.cli import main

from conftest import write_stack_dir


def test_single_mode(stack_dir, tmp_path):
    output_dir = tmp_path / "out"
    assert main(["single", str(stack_dir), str(output_dir), "--alpha", "0.36", "--gamma", "2.0"]) == 0
    assert (output_dir / "office.hdr").is_file()
    assert (output_dir / "office_ldr_gamma.png").is_file()


def test_single_mode_with_name_and_config(stack_dir, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"SAVE_LUMINANCE": False}))
    output_dir = tmp_path / "out"

    assert main(["single", str(stack_dir), str(output_dir), "--name", "renamed",
                 "--config", str(config_path)]) == 0

    assert (output_dir / "renamed.hdr").is_file()
    assert not (output_dir / "renamed_luminance.hdr").exists()


def test_single_mode_fails_on_missing_stack(tmp_path):
    assert main(["single", str(tmp_path / "missing"), str(tmp_path / "out")]) == 1


def test_invalid_override_fails(stack_dir, tmp_path):
    assert main(["single", str(stack_dir), str(tmp_path / "out"), "--gamma", "-1"]) == 1


def test_batch_mode(tmp_path, scene_radiance):
    root = tmp_path / "stacks"
    write_stack_dir(root / "hall", scene_radiance)
    write_stack_dir(root / "yard", scene_radiance * 0.5)
    (root / "notes").mkdir()
    output_dir = tmp_path / "out"

    assert main(["batch", str(root), str(output_dir)]) == 0

    assert (output_dir / "hall.hdr").is_file()
    assert (output_dir / "yard.hdr").is_file()


def test_batch_mode_reports_failures(tmp_path, scene_radiance):
    root = tmp_path / "stacks"
    write_stack_dir(root / "good", scene_radiance)
    (write_stack_dir(root / "broken", scene_radiance) / "curve.m").unlink()

    assert main(["batch", str(root), str(tmp_path / "out")]) == 1


def test_batch_mode_without_stacks(tmp_path):
    (tmp_path / "empty").mkdir()
    assert main(["batch", str(tmp_path / "empty"), str(tmp_path / "out")]) == 1


def test_single_mode_defaults_to_config_output_dir(stack_dir, tmp_path):
    output_dir = tmp_path / "configured"
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"OUTPUT_DIR": str(output_dir)}))

    assert main(["single", str(stack_dir), "--config", str(config_path)]) == 0

    assert (output_dir / "office.hdr").is_file()
    assert (output_dir / "office_ldr_gamma.png").is_file()
