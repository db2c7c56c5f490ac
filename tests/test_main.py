import pytest
import numpy as np
import sys
import os
from unittest.mock import patch

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from swerve_sim.main import build_drivetrain, run_simulation, main
from swerve_sim.simulation import ModulePosition


class TestBuildDrivetrain:
    """Test drivetrain assembly from command-line options"""

    def test_default_build(self):
        drivetrain = build_drivetrain()
        module = drivetrain.module(ModulePosition.FRONT_LEFT)

        assert module.config.drive_gear.reduction == pytest.approx(6.75)
        assert module.config.steer_gear.reduction == pytest.approx(150.0 / 7.0)
        assert drivetrain.config.robot_mass_kg == 45.0

    def test_mk4n_build(self):
        drivetrain = build_drivetrain(family="mk4n", tier="l3", wheel="tire", motor="neo")
        module = drivetrain.module(ModulePosition.BACK_RIGHT)

        assert module.config.drive_gear.reduction == pytest.approx(5.36)
        assert module.config.traction.grip_coefficient == 1.15

    def test_unknown_tier(self):
        with pytest.raises(KeyError):
            build_drivetrain(family="mk4n", tier="L4")


class TestRunSimulation:
    """Test the demo loop and its report"""

    def test_report_printed(self, capsys):
        drivetrain = build_drivetrain()
        run_simulation(drivetrain, drive_volts=6.0, steer_volts=0.0, duration=0.2)

        output = capsys.readouterr().out
        assert "Swerve Drivetrain Simulation" in output
        assert "FRONT_LEFT" in output
        assert "Gyro:" in output
        assert drivetrain.elapsed_time == pytest.approx(0.2)

    def test_collision_drift_injected(self, capsys):
        drivetrain = build_drivetrain()
        run_simulation(drivetrain, drive_volts=0.0, steer_volts=0.0, duration=0.2, collision_drift_deg=5.0)

        assert "Collision" in capsys.readouterr().out
        assert drivetrain.gyro.get_gyro_rotation() == pytest.approx(np.radians(5.0))


class TestMain:
    """Test command-line entry point"""

    def test_main_runs(self, capsys):
        argv = ['swerve-sim', '--family', 'mk4', '--tier', 'L1', '--duration', '0.1', '--seed', '3',
                '--gyro-noise', '0.01', '--noise-distribution', 'uniform']
        with patch.object(sys, 'argv', argv):
            main()

        assert "Chassis pose" in capsys.readouterr().out

    def test_invalid_tier_exits(self):
        with patch.object(sys, 'argv', ['swerve-sim', '--family', 'mk4n', '--tier', 'L4']):
            with pytest.raises(SystemExit):
                main()
