import argparse
import logging
import time

from facultime.io_utils import (
    load_lectures, load_preferences, load_faculty, load_request_json,
    generate_synthetic, save_schedule_csv
)
from facultime.channel import StartRequest
from facultime.exceptions import FaculTimeError
from facultime.algorithms.greedy import greedy_assignment
from facultime.algorithms.branch_bound import SearchParams
from facultime.scheduling.evaluation import summary
from facultime.worker import SearchWorker


def build_request(args) -> StartRequest:
    if args.request:
        return load_request_json(args.request)
    if args.lectures and args.preferences:
        lectures = load_lectures(args.lectures)
        preferences = load_preferences(args.preferences)
        faculty = load_faculty(args.faculty) if args.faculty else list(preferences.keys())
        return StartRequest(faculty=faculty, lectures=lectures, preferences=preferences)
    if args.generate is not None:
        faculty, lectures, preferences = generate_synthetic(
            args.generate, n_time_slots=args.time_slots, lectures_per_slot=args.lectures_per_slot,
            pref_prob=args.pref_prob, seed=args.seed)
        return StartRequest(faculty=faculty, lectures=lectures, preferences=preferences)
    raise SystemExit("Provide --request, --lectures with --preferences, or --generate N")


def main():
    p = argparse.ArgumentParser(description="FaculTime – preference-aware lecture slot assignment")
    # Input modes
    p.add_argument('--request', type=str, help='JSON start request (facultyList, lectureSlots, preferenceData)')
    p.add_argument('--lectures', type=str, help='lectures.csv with id,time_slot')
    p.add_argument('--preferences', type=str, help='preferences.csv with faculty,time_slot')
    p.add_argument('--faculty', type=str, help='Optional faculty list, one per line (default: preference rows)')
    p.add_argument('--generate', type=int, default=None, help='Generate synthetic data with N faculty')
    p.add_argument('--time_slots', type=int, default=6)
    p.add_argument('--lectures_per_slot', type=int, default=2)
    p.add_argument('--pref_prob', type=float, default=0.3)

    # Search
    p.add_argument('--initial_score', type=int, default=None,
                   help='Starting bound (default: score of the greedy heuristic)')
    p.add_argument('--shuffle', action='store_true', help='Randomize the faculty exploration order')
    p.add_argument('--seed', type=int, default=None)
    p.add_argument('--report_interval', type=int, default=1000, help='Nodes between progress reports')
    p.add_argument('--time_limit', type=float, default=None, help='Cancel the search after this many seconds')
    p.add_argument('--process', action='store_true', help='Run the search in a separate process')

    # Output
    p.add_argument('--out_schedule', type=str, default='schedule.csv')
    p.add_argument('--log_level', type=str, default='WARNING')
    args = p.parse_args()

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        request = build_request(args)
    except FaculTimeError as e:
        raise SystemExit(f"Invalid input: {e.message}")

    # Starting bound from the greedy heuristic unless the caller supplied one
    fallback = None
    if args.initial_score is not None:
        request.initial_best_score = args.initial_score
    elif request.initial_best_score is None:
        try:
            fallback = greedy_assignment(request.faculty, request.lectures, request.preferences)
            request.initial_best_score = fallback.score
        except FaculTimeError as e:
            print(f"Greedy heuristic failed ({e.message}); searching without a bound")
    print(f"Initial bound: {request.initial_best_score}")

    params = SearchParams(report_interval=args.report_interval, shuffle=args.shuffle, seed=args.seed)
    worker = SearchWorker(request, params=params, use_process=args.process).start()
    deadline = time.perf_counter() + args.time_limit if args.time_limit else None
    t0 = time.perf_counter()
    try:
        while not worker.done:
            if deadline and time.perf_counter() >= deadline and not worker.channel.cancelled:
                print("Time limit reached, cancelling search ...")
                worker.cancel()
            msg = worker.poll(timeout=0.1)
            if msg is None:
                if worker.is_alive():
                    continue
                # worker is gone; its last messages may still be in flight
                msg = worker.poll(timeout=0.5)
                if msg is None:
                    raise SystemExit("Search worker exited without reporting a result")
            if msg.kind == 'progress':
                print(f"  nodes={msg.nodes_explored}  depth={msg.faculty_index}  faculty={msg.faculty_label}")
            elif msg.kind == 'solutionFound':
                print(f"  improved: score={msg.score}")
    except KeyboardInterrupt:
        worker.cancel()
        worker.result()
    worker.join()

    final = worker.final
    if final.kind == 'error':
        raise SystemExit(f"Search failed: {final.message}")

    sched = worker.best.schedule if worker.best is not None else fallback
    print(summary(request.faculty, request.lectures, request.preferences, sched,
                  final.final_score, final.nodes_explored, cancelled=final.kind == 'cancelled'))
    print(f"Runtime: {time.perf_counter() - t0:.3f}s")

    if sched is not None:
        save_schedule_csv(args.out_schedule, sched)
        print(f"Saved: {args.out_schedule}")
    else:
        print("No schedule to save.")


if __name__ == '__main__':
    main()
