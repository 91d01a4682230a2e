"""
API 평가 스크립트

사용법:
    python evaluate_api.py --endpoint http://localhost:8000 --rooms rooms.json --styles Modern Rustic

설명:
    - rooms.json: [{"roomId": "...", "imageUrl": "..."}, ...]
    - 각 방에 대해 지정한 스타일로 /api/transform-room 호출
    - 처리 시간, 성공률, 오류 종류를 측정
    - 결과를 evaluation_report.md에 저장
"""

import requests
import json
import time
import argparse
from pathlib import Path
from typing import List, Dict, Any
from collections import Counter
import statistics

DEFAULT_STYLES = ["Scandinavian", "Modern", "Industrial"]


class APITester:
    def __init__(self, endpoint: str, timeout: float = 180):
        self.endpoint = endpoint.rstrip('/')
        self.api_url = f"{self.endpoint}/api/transform-room"
        self.timeout = timeout

    def check_backend(self) -> Dict[str, Any]:
        """생성 백엔드 키/크레딧 확인"""
        response = requests.get(f"{self.endpoint}/api/test-stability", timeout=30)
        response.raise_for_status()
        return response.json()

    def transform(self, room: Dict[str, str], style: str) -> Dict[str, Any]:
        """단일 방 + 스타일 테스트"""
        print(f"\nTesting: room={room['roomId']} style={style}")
        payload = {"imageUrl": room["imageUrl"], "interiorStyle": style, "roomId": room["roomId"]}

        start_time = time.time()
        try:
            response = requests.post(self.api_url, json=payload, timeout=self.timeout)
            elapsed_time = time.time() - start_time
            data = response.json()
            return {
                'room_id': room["roomId"],
                'style': style,
                'success': response.status_code == 200 and data.get('success', False),
                'status_code': response.status_code,
                'processing_time': elapsed_time,
                'image_url': data.get('transformedImageUrl'),
                'error_kind': data.get('errorKind'),
                'error': data.get('error'),
            }
        except (requests.RequestException, ValueError) as e:
            return {
                'room_id': room["roomId"],
                'style': style,
                'success': False,
                'status_code': None,
                'processing_time': time.time() - start_time,
                'error_kind': 'NetworkError',
                'error': str(e),
            }

    def run(self, rooms: List[Dict[str, str]], styles: List[str]) -> List[Dict[str, Any]]:
        results = []
        for room in rooms:
            for style in styles:
                results.append(self.transform(room, style))
                time.sleep(1)  # 서버 부하 방지
        return results

    def generate_report(self, results: List[Dict[str, Any]], output_file: str = "evaluation_report.md"):
        """평가 보고서 생성"""
        total_tests = len(results)
        successful = [r for r in results if r['success']]
        processing_times = [r['processing_time'] for r in successful]
        error_kinds = Counter(r['error_kind'] for r in results if not r['success'])

        style_stats: Dict[str, Dict[str, int]] = {}
        for result in results:
            stats = style_stats.setdefault(result['style'], {'success': 0, 'total': 0})
            stats['total'] += 1
            if result['success']:
                stats['success'] += 1

        with open(output_file, 'w', encoding='utf-8') as f:
            f.write("# 방 스타일 변환 API 평가 보고서\n\n")

            f.write("## 1. 전체 요약\n\n")
            f.write(f"- 테스트 날짜: {time.strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"- API 엔드포인트: {self.api_url}\n")
            f.write(f"- 총 테스트 수: {total_tests}\n")
            if total_tests:
                f.write(f"- 성공: {len(successful)} ({len(successful)/total_tests*100:.1f}%)\n\n")

            f.write("## 2. 처리 시간\n\n")
            if processing_times:
                f.write(f"- 평균: {statistics.mean(processing_times):.2f}초\n")
                f.write(f"- 최소: {min(processing_times):.2f}초\n")
                f.write(f"- 최대: {max(processing_times):.2f}초\n")
                f.write(f"- 중앙값: {statistics.median(processing_times):.2f}초\n\n")
            else:
                f.write("측정 불가\n\n")

            f.write("## 3. 스타일별 성공률\n\n")
            f.write("| 스타일 | 성공 | 실패 | 성공률 |\n")
            f.write("|--------|------|------|--------|\n")
            for style, stats in sorted(style_stats.items()):
                rate = stats['success'] / stats['total'] * 100 if stats['total'] else 0
                f.write(f"| {style} | {stats['success']} | {stats['total'] - stats['success']} | {rate:.1f}% |\n")
            f.write("\n")

            f.write("## 4. 오류 종류\n\n")
            for kind, count in error_kinds.most_common():
                f.write(f"- {kind}: {count}\n")
            f.write("\n")

            f.write("## 5. 개별 결과\n\n")
            for idx, result in enumerate(results, 1):
                status = "성공" if result['success'] else "실패"
                f.write(f"- {idx}. {result['room_id']} / {result['style']}: {status} ({result['processing_time']:.2f}초)")
                if result['success']:
                    f.write(f" {result['image_url']}\n")
                else:
                    f.write(f" {result['error_kind']}: {result['error']}\n")

        print(f"\n평가 보고서가 {output_file}에 저장되었습니다.")


def main():
    parser = argparse.ArgumentParser(description='방 스타일 변환 API 평가')
    parser.add_argument('--endpoint', default='http://localhost:8000', help='API 엔드포인트 URL')
    parser.add_argument('--rooms', default='rooms.json', help='방 목록 JSON 파일')
    parser.add_argument('--styles', nargs='+', default=DEFAULT_STYLES, help='테스트할 스타일')
    parser.add_argument('--output', default='evaluation_report.md', help='평가 보고서 출력 파일')
    args = parser.parse_args()

    rooms_path = Path(args.rooms)
    if not rooms_path.exists():
        print(f"오류: 방 목록 파일 '{args.rooms}'를 찾을 수 없습니다.")
        return

    rooms = json.loads(rooms_path.read_text(encoding='utf-8'))
    tester = APITester(args.endpoint)

    backend = tester.check_backend()
    if not backend.get('success'):
        print(f"생성 백엔드 확인 실패: {backend.get('error')} ({backend.get('hint')})")
        return

    results = tester.run(rooms, args.styles)
    tester.generate_report(results, args.output)

    successful = sum(1 for r in results if r['success'])
    print(f"\n총 {len(results)}건 테스트 완료")
    print(f"성공: {successful}, 실패: {len(results) - successful}")


if __name__ == "__main__":
    main()
