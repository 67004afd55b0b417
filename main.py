"""
gamemcts - CLIエントリポイント

対戦シミュレーション・局面評価・自己対戦データ生成のコマンドラインインターフェース
"""

import argparse
import yaml

from gamemcts.games import GAMES
from gamemcts.mcts.mcts import MCTS
from gamemcts.eval.players import MCTSPlayer
from gamemcts.eval.arena import evaluate_player
from gamemcts.train.self_play import SelfPlayWorker, save_training_data


def load_config(config_path: str) -> dict:
    """
    YAML設定ファイルを読み込む

    Args:
        config_path: 設定ファイルのパス

    Returns:
        dict: 設定辞書
    """
    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)
    return config or {}


def get_game_class(config: dict):
    """
    設定からゲームクラスを取得

    Args:
        config: 設定辞書

    Returns:
        局面クラス
    """
    name = config.get('game', {}).get('name', 'connect4')
    if name not in GAMES:
        raise ValueError(f"Unknown game: {name!r} (available: {', '.join(sorted(GAMES))})")
    return GAMES[name]


def simulate_command(args):
    """
    対戦シミュレーションコマンド（MCTS bot 同士）

    Args:
        args: argparseの引数
    """
    config = load_config(args.config)
    game_class = get_game_class(config)
    seed = config.get('system', {}).get('seed')

    arena_config = config.get('arena', {})
    num_games = args.games if args.games is not None else arena_config.get('num_games', 10)
    bot1_config = arena_config.get('bot1', {})
    bot2_config = arena_config.get('bot2', {})

    bot1 = MCTSPlayer(
        num_iterations=bot1_config.get('num_iterations', 1000),
        playouts=bot1_config.get('playouts', 1),
        seed=seed,
    )
    bot2 = MCTSPlayer(
        num_iterations=bot2_config.get('num_iterations', 1000),
        playouts=bot2_config.get('playouts', 1),
        seed=None if seed is None else seed + 1,
    )
    if bot1.name == bot2.name:
        bot1.name += "-A"
        bot2.name += "-B"

    print("=" * 70)
    print(f"Simulation: {game_class.__name__}")
    print("=" * 70)
    print(f"{bot1.name} vs {bot2.name}, {num_games} games")

    result = evaluate_player(
        player=bot1,
        opponent=bot2,
        game_class=game_class,
        num_games=num_games,
        verbose=args.verbose,
    )

    print(f"\nResult for {bot1.name}:")
    print(f"  Win Rate:  {result['win_rate'] * 100:.1f}%")
    print(f"  Draw Rate: {result['draw_rate'] * 100:.1f}%")
    print(f"  Loss Rate: {result['loss_rate'] * 100:.1f}%")
    print(f"  Avg Moves: {result['avg_moves']:.1f}")


def evaluate_command(args):
    """
    局面評価コマンド（初期局面での勝率と推奨手）

    Args:
        args: argparseの引数
    """
    config = load_config(args.config)
    game_class = get_game_class(config)
    mcts_config = config.get('mcts', {})

    mcts = MCTS(
        num_iterations=args.iterations or mcts_config.get('num_iterations', 1000),
        playouts=args.playouts or mcts_config.get('playouts', 1),
        seed=config.get('system', {}).get('seed'),
    )

    state = game_class()
    print(state)

    result = mcts.evaluate(state, player=1)

    print(f"\nVisits: {result['visits']}")
    print(f"Player 1 wins: {result['player_win_rate'] * 100:.1f}%, "
          f"Player 2 wins: {result['opponent_win_rate'] * 100:.1f}%, "
          f"Draws: {result['draw_rate'] * 100:.1f}%")
    if result['best_action'] is None:
        print("No move available")
    else:
        print(f"Best move: {result['best_action']}")


def selfplay_command(args):
    """
    自己対戦データ生成コマンド

    Args:
        args: argparseの引数
    """
    config = load_config(args.config)
    game_class = get_game_class(config)
    mcts_config = config.get('mcts', {})
    self_play_config = config.get('self_play', {})

    mcts = MCTS(
        num_iterations=mcts_config.get('num_iterations', 1000),
        playouts=mcts_config.get('playouts', 1),
        seed=config.get('system', {}).get('seed'),
    )

    worker = SelfPlayWorker(
        game_class=game_class,
        mcts=mcts,
        temperature_threshold=self_play_config.get('temperature_threshold', 4),
        reuse_tree=self_play_config.get('reuse_tree', True),
    )

    num_episodes = args.episodes or self_play_config.get('num_episodes', 10)
    output = args.output or self_play_config.get('output', 'data/self_play/data.npz')

    print("=" * 70)
    print(f"Self-Play: {game_class.__name__}, {num_episodes} episodes")
    print("=" * 70)

    training_data = worker.execute_episodes(num_episodes)
    path = save_training_data(output, training_data)

    print(f"\nSamples: {len(training_data)}")
    print(f"Saved to: {path}")


def main():
    """メインエントリポイント"""
    parser = argparse.ArgumentParser(description="gamemcts - Monte Carlo Tree Search CLI")
    parser.add_argument(
        '--config',
        type=str,
        default='configs/default.yaml',
        help='Path to config file (default: configs/default.yaml)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Simulate コマンド
    simulate_parser = subparsers.add_parser('simulate', help='Play MCTS bots against each other')
    simulate_parser.add_argument(
        '--games',
        type=int,
        default=None,
        help='Number of games (default: arena.num_games in config)'
    )
    simulate_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show detailed game progress'
    )
    simulate_parser.set_defaults(func=simulate_command)

    # Evaluate コマンド
    evaluate_parser = subparsers.add_parser('evaluate', help='Evaluate the initial position')
    evaluate_parser.add_argument(
        '--iterations',
        type=int,
        default=None,
        help='MCTS iterations (default: mcts.num_iterations in config)'
    )
    evaluate_parser.add_argument(
        '--playouts',
        type=int,
        default=None,
        help='Playouts per iteration (default: mcts.playouts in config)'
    )
    evaluate_parser.set_defaults(func=evaluate_command)

    # Self-Play コマンド
    selfplay_parser = subparsers.add_parser('selfplay', help='Generate self-play training data')
    selfplay_parser.add_argument(
        '--episodes',
        type=int,
        default=None,
        help='Number of episodes (default: self_play.num_episodes in config)'
    )
    selfplay_parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output .npz path (default: self_play.output in config)'
    )
    selfplay_parser.set_defaults(func=selfplay_command)

    args = parser.parse_args()

    if hasattr(args, 'func'):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
